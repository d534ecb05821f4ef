from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..config import Settings, load_settings
from ..contracts import REPORT_SCHEMA, validate_file
from ..core.context import RunContext
from ..core.env import getenv
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL, ERR_USAGE
from ..core.logging import log_event
from ..discovery import collect_documents
from ..parsers import find_language, languages, resolve_parser
from ..report import READ_POLICIES, scan
from .output import build_base_payload, emit, render_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="snippetctl",
        description="Check that fenced code samples in Markdown documents parse.",
    )
    p.add_argument("--version", action="version", version=f"snippetctl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier used in log events")
    p.add_argument("--config", help="TOML config file (default: snippetctl.toml or pyproject.toml)")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    scan_p = sub.add_parser("scan", help="validate fenced code blocks and write the failure report")
    scan_p.add_argument("paths", nargs="*", help="Markdown files or directories (default from config)")
    scan_p.add_argument("--language", help="fence language tag to validate (default: python)")
    scan_p.add_argument("--out", help="report output path")
    scan_p.add_argument("--jobs", type=int, help="validate blocks on N worker threads")
    scan_p.add_argument("--on-read-error", choices=list(READ_POLICIES), help="abort the run or skip unreadable documents")
    scan_p.add_argument("--timeout", type=float, help="per-block timeout in seconds for external parsers")
    scan_p.add_argument("--exclude", action="append", help="glob of documents to skip when walking directories")
    scan_p.add_argument("--json", action="store_true", help="emit JSON output")

    langs_p = sub.add_parser("languages", help="list supported fence languages")
    langs_p.add_argument("--json", action="store_true", help="emit JSON output")

    val_p = sub.add_parser("validate-report", help="validate a report file against its JSON schema")
    val_p.add_argument("--file", required=True)
    val_p.add_argument("--json", action="store_true", help="emit JSON output")

    version_p = sub.add_parser("version", help="print the tool version")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    return p


def _settings_for(ns: argparse.Namespace, ctx: RunContext) -> Settings:
    config_path = Path(ns.config) if ns.config else None
    settings = load_settings(config_path, ctx.cwd)
    return settings.override(
        language=ns.language,
        paths=tuple(ns.paths) or None,
        out=ns.out,
        jobs=ns.jobs,
        on_read_error=ns.on_read_error,
        timeout=ns.timeout,
        exclude=tuple(ns.exclude) if ns.exclude else None,
    )


def _run_scan(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    settings = _settings_for(ns, ctx)
    # resolve before reading anything so a missing prerequisite fails fast
    parser = resolve_parser(settings.language, settings.timeout)
    documents = collect_documents([Path(raw) for raw in settings.paths], settings.exclude)
    out_path = Path(settings.out)
    log_event(ctx, "info", "cli", "scan", language=settings.language, documents=len(documents), jobs=settings.jobs)
    result = scan(
        documents,
        out_path,
        settings.language,
        parser,
        jobs=settings.jobs,
        on_read_error=settings.on_read_error,
        ctx=ctx,
    )
    payload = {
        **build_base_payload(ctx),
        "language": find_language(settings.language).name,
        "documents": result.documents,
        "skipped": result.skipped,
        "blocks": result.blocks,
        "failures": len(result.report),
        "report": out_path.as_posix(),
    }
    if as_json:
        emit(payload, as_json=True)
    else:
        print(
            f"scanned {result.documents} document(s), {result.blocks} `{settings.language}` block(s): "
            f"{len(result.report)} syntax error(s); report written to {out_path.as_posix()}"
        )
    return 0


def _run_languages(ctx: RunContext, as_json: bool) -> int:
    if as_json:
        rows = [{"name": lang.name, "aliases": list(lang.aliases), "description": lang.description} for lang in languages()]
        emit({**build_base_payload(ctx), "languages": rows}, as_json=True)
        return 0
    for lang in languages():
        aliases = ", ".join(lang.aliases) or "-"
        print(f"{lang.name:<8} aliases: {aliases:<18} {lang.description}")
    return 0


def _run_validate_report(ctx: RunContext, ns: argparse.Namespace, as_json: bool) -> int:
    validate_file(REPORT_SCHEMA, ns.file)
    if as_json:
        emit({**build_base_payload(ctx), "schema": REPORT_SCHEMA, "file": ns.file}, as_json=True)
    else:
        print(f"{ns.file}: valid {REPORT_SCHEMA}")
    return 0


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    ns = build_parser().parse_args(raw_argv)
    cli_json = "--json" in raw_argv
    if ns.format and cli_json and ns.format != "json":
        conflict = ScriptError("conflicting output flags: use either --format or --json", ERR_USAGE, kind="usage_error")
        print(render_error(as_json=False, error=conflict), file=sys.stderr)
        return conflict.code
    fmt = resolve_output_format(cli_json=cli_json, cli_format=ns.format, ci_present=bool(getenv("CI")))
    ctx = RunContext.from_args(
        ns.run_id,
        output_format="json" if fmt == "json" else "text",
        verbose=ns.verbose,
        quiet=ns.quiet,
        log_json=ns.log_json,
    )
    as_json = ctx.output_format == "json"
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "scan":
            return _run_scan(ctx, ns, as_json)
        if ns.cmd == "languages":
            return _run_languages(ctx, as_json)
        if ns.cmd == "validate-report":
            return _run_validate_report(ctx, ns, as_json)
        if ns.cmd == "version":
            if as_json:
                emit({**build_base_payload(ctx), "version": __version__}, as_json=True)
            else:
                print(f"snippetctl {__version__}")
            return 0
        return ERR_USAGE
    except ScriptError as exc:
        log_event(ctx, "error", "cli", "failed", cmd=ns.cmd, kind=exc.kind, code=exc.code)
        print(render_error(as_json=as_json, error=exc), file=sys.stderr)
        return exc.code
    except Exception as exc:
        internal = ScriptError(f"internal error: {exc}", ERR_INTERNAL, kind="internal_error")
        log_event(ctx, "error", "cli", "failed", cmd=ns.cmd, kind=internal.kind, code=internal.code)
        print(render_error(as_json=as_json, error=internal), file=sys.stderr)
        return internal.code
