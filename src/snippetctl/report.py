from __future__ import annotations

import os
import stat
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Literal, Sequence

from .contracts import REPORT_SCHEMA
from .contracts import validate as validate_payload
from .core.context import RunContext
from .core.errors import ScriptError
from .core.exit_codes import ERR_ARTIFACT, ERR_IO
from .core.logging import log_event
from .core.serialize import dumps_artifact
from .extract import extract
from .model import CodeBlock, Document, Failed, Report, ValidationError, ValidationOutcome
from .parsers import ParseFn
from .validate import validate

ReadPolicy = Literal["abort", "skip"]
READ_POLICIES: tuple[ReadPolicy, ...] = ("abort", "skip")


@dataclass
class ScanResult:
    report: Report = field(default_factory=list)
    documents: int = 0
    skipped: int = 0
    blocks: int = 0


def read_documents(
    paths: Sequence[Path],
    on_read_error: ReadPolicy = "abort",
    ctx: RunContext | None = None,
) -> Iterator[Document]:
    for path in paths:
        try:
            doc = Document.read(path)
        except (OSError, UnicodeDecodeError) as exc:
            if on_read_error == "skip":
                log_event(ctx, "warn", "report", "skip-unreadable", path=path.as_posix(), error=str(exc))
                continue
            raise ScriptError(f"cannot read document {path}: {exc}", ERR_IO, kind="read_fault") from exc
        log_event(ctx, "debug", "report", "read", path=path.as_posix(), chars=len(doc.text))
        yield doc


def _validate_all(blocks: list[CodeBlock], parser: ParseFn, jobs: int) -> list[ValidationOutcome]:
    if jobs > 1 and len(blocks) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            # map yields in submission order
            return list(ex.map(lambda block: validate(block, parser), blocks))
    return [validate(block, parser) for block in blocks]


def collect(
    paths: Sequence[Path],
    language: str,
    parser: ParseFn,
    *,
    jobs: int = 1,
    on_read_error: ReadPolicy = "abort",
    ctx: RunContext | None = None,
) -> ScanResult:
    """Extract and validate every block of every document, in discovery order."""
    result = ScanResult()
    pending: list[CodeBlock] = []
    for doc in read_documents(paths, on_read_error, ctx):
        result.documents += 1
        blocks = extract(doc.text, doc.path, language)
        log_event(ctx, "debug", "report", "extract", path=doc.path.as_posix(), blocks=len(blocks))
        if jobs > 1:
            pending.extend(blocks)
            continue
        result.blocks += len(blocks)
        _append_failures(result.report, blocks, _validate_all(blocks, parser, 1), ctx)
    if pending:
        result.blocks += len(pending)
        _append_failures(result.report, pending, _validate_all(pending, parser, jobs), ctx)
    result.skipped = len(paths) - result.documents
    return result


def _append_failures(
    report: Report,
    blocks: list[CodeBlock],
    outcomes: list[ValidationOutcome],
    ctx: RunContext | None,
) -> None:
    for block, outcome in zip(blocks, outcomes):
        if not isinstance(outcome, Failed):
            continue
        log_event(
            ctx,
            "debug",
            "report",
            "syntax-error",
            path=block.source_file.as_posix(),
            line=block.line,
            message=outcome.message,
        )
        report.append(ValidationError(source_file=block.source_file, content=block.content, message=outcome.message))


def serialize(report: Report) -> str:
    payload = [entry.to_json() for entry in report]
    validate_payload(REPORT_SCHEMA, payload)
    return dumps_artifact(payload)


def _report_mode(out_path: Path) -> int:
    try:
        return stat.S_IMODE(out_path.stat().st_mode)
    except FileNotFoundError:
        # os.umask can only be read by setting it
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_report(report: Report, out_path: Path) -> Path:
    """Replace ``out_path`` with the serialized report in a single step."""
    content = serialize(report)
    tmp_name: str | None = None
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=out_path.parent,
            prefix=f".{out_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
        os.chmod(tmp_name, _report_mode(out_path))
        os.replace(tmp_name, out_path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ScriptError(f"cannot write report {out_path}: {exc}", ERR_ARTIFACT, kind="write_fault") from exc
    return out_path


def scan(
    paths: Sequence[Path],
    out_path: Path,
    language: str,
    parser: ParseFn,
    *,
    jobs: int = 1,
    on_read_error: ReadPolicy = "abort",
    ctx: RunContext | None = None,
) -> ScanResult:
    result = collect(paths, language, parser, jobs=jobs, on_read_error=on_read_error, ctx=ctx)
    write_report(result.report, out_path)
    log_event(
        ctx,
        "info",
        "report",
        "written",
        path=out_path.as_posix(),
        documents=result.documents,
        skipped=result.skipped,
        blocks=result.blocks,
        failures=len(result.report),
    )
    return result


def run(
    paths: Sequence[Path],
    out_path: Path,
    language: str,
    parser: ParseFn,
    *,
    jobs: int = 1,
    on_read_error: ReadPolicy = "abort",
    ctx: RunContext | None = None,
) -> Report:
    return scan(paths, out_path, language, parser, jobs=jobs, on_read_error=on_read_error, ctx=ctx).report
