from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable

MARKDOWN_SUFFIXES = (".md", ".markdown")

EXCLUDED_PARTS = {
    ".git",
    ".venv",
    "__pycache__",
    ".mypy_cache",
    ".ruff_cache",
    ".hypothesis",
    ".pytest_cache",
    "node_modules",
}


def _excluded(path: Path, patterns: Iterable[str]) -> bool:
    if any(part in EXCLUDED_PARTS for part in path.parts):
        return True
    posix = path.as_posix()
    return any(fnmatch(posix, pattern) or fnmatch(path.name, pattern) for pattern in patterns)


def iter_markdown_files(root: Path, exclude: Iterable[str] = ()) -> list[Path]:
    patterns = tuple(exclude)
    out: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in MARKDOWN_SUFFIXES:
            continue
        if _excluded(path.relative_to(root), patterns):
            continue
        out.append(path)
    return out


def collect_documents(paths: Iterable[Path], exclude: Iterable[str] = ()) -> list[Path]:
    """Expand CLI path arguments into an ordered, de-duplicated document list.

    Explicit files keep argument order and are taken as given, whatever their
    suffix. Directories contribute their Markdown files in sorted order. Paths
    that do not exist are kept so that reading them fails loudly later.
    """
    patterns = tuple(exclude)
    seen: set[Path] = set()
    out: list[Path] = []
    for raw in paths:
        expanded = iter_markdown_files(raw, patterns) if raw.is_dir() else [raw]
        for path in expanded:
            key = path.resolve()
            if key in seen:
                continue
            seen.add(key)
            out.append(path)
    return out
