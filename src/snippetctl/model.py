"""Data model shared by the extractor, the validator and the report writer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Document:
    path: Path
    text: str

    @classmethod
    def read(cls, path: Path) -> "Document":
        return cls(path=path, text=path.read_text(encoding="utf-8"))


@dataclass(frozen=True)
class CodeBlock:
    source_file: Path
    content: str
    line: int = 0


@dataclass(frozen=True)
class Ok:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


ValidationOutcome = Ok | Failed


@dataclass(frozen=True)
class ValidationError:
    source_file: Path
    content: str
    message: str

    def to_json(self) -> dict[str, str]:
        return {"file": self.source_file.as_posix(), "content": self.content, "message": self.message}


Report = list[ValidationError]
