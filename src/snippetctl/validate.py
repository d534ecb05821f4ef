from __future__ import annotations

from .model import CodeBlock, Failed, Ok, ValidationOutcome
from .parsers import ParseFn


def validate(block: CodeBlock, parser: ParseFn) -> ValidationOutcome:
    """Classify one block as ``Ok`` or ``Failed``.

    Anything the parser raises is recorded as a failure for this block so a
    crashing parser never aborts the run.
    """
    try:
        signal = parser(block.content)
    except Exception as exc:
        return Failed(message=str(exc).strip() or type(exc).__name__)
    if signal:
        return Failed(message=str(signal))
    return Ok()
