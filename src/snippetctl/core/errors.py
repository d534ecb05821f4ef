from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    """A failure of the run itself, carrying its process exit code.

    Syntax errors found in documents are results, never ``ScriptError``.
    """

    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message

    def to_json(self) -> dict[str, object]:
        return {"code": self.code, "kind": self.kind, "message": self.message}
