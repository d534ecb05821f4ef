from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_IO, ERR_USAGE, ERR_VALIDATION

REPORT_SCHEMA = "snippetctl.report.v1"


def schemas_root() -> Path:
    return Path(__file__).resolve().parent / "schemas"


def schema_path_for(schema_name: str) -> Path:
    path = schemas_root() / f"{schema_name}.schema.json"
    if not path.is_file():
        raise ScriptError(f"unknown schema `{schema_name}`", ERR_USAGE, kind="unknown_schema")
    return path


def validate(schema_name: str, payload: Any) -> None:
    schema = json.loads(schema_path_for(schema_name).read_text(encoding="utf-8"))
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(
            f"schema validation failed for {schema_name} at {loc}: {exc.message}",
            ERR_VALIDATION,
            kind="schema_violation",
        ) from exc


def validate_file(schema_name: str, file_path: str | Path) -> None:
    path = Path(file_path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ScriptError(f"cannot read {path}: {exc}", ERR_IO, kind="read_fault") from exc
    except json.JSONDecodeError as exc:
        raise ScriptError(f"{path} is not valid JSON: {exc}", ERR_VALIDATION, kind="schema_violation") from exc
    validate(schema_name, payload)
