"""Fenced code block extraction.

The scanner is a two-state automaton walked once over the document lines.
``step`` is the whole transition table; ``extract`` only folds its events into
code blocks.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from .model import CodeBlock

FENCE = "```"


class State(str, Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"


class Event(str, Enum):
    SKIP = "skip"
    OPEN = "open"
    LINE = "line"
    CLOSE = "close"


def open_marker(language: str) -> str:
    return f"{FENCE}{language}"


def is_close_fence(line: str) -> bool:
    return line.startswith(FENCE) and not line[len(FENCE):].strip()


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, tolerating CRLF.

    ``str.splitlines`` also breaks on form feeds and Unicode separators, which
    may legitimately appear inside a code sample.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def step(state: State, line: str, marker: str) -> tuple[State, Event]:
    if state is State.OUTSIDE:
        if line.startswith(marker):
            return State.INSIDE, Event.OPEN
        return State.OUTSIDE, Event.SKIP
    # no nesting: an open marker inside a block is plain content
    if is_close_fence(line):
        return State.OUTSIDE, Event.CLOSE
    return State.INSIDE, Event.LINE


def extract(text: str, source_file: Path, language: str) -> list[CodeBlock]:
    marker = open_marker(language)
    blocks: list[CodeBlock] = []
    state = State.OUTSIDE
    buffer: list[str] = []
    opened_at = 0
    for lineno, line in enumerate(split_lines(text), start=1):
        state, event = step(state, line, marker)
        if event is Event.OPEN:
            buffer = []
            opened_at = lineno
        elif event is Event.LINE:
            buffer.append(line + "\n")
        elif event is Event.CLOSE:
            content = "".join(buffer).strip()
            if content:
                blocks.append(CodeBlock(source_file=source_file, content=content, line=opened_at))
    # an unterminated trailing block is dropped, not validated
    return blocks
