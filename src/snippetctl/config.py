"""Layered settings: defaults, then a TOML file, then environment variables.

CLI flags are applied last by the command layer with ``Settings.override``.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from .core.env import read_env
from .core.errors import ScriptError
from .core.exit_codes import ERR_CONFIG
from .report import READ_POLICIES, ReadPolicy

CONFIG_FILE = "snippetctl.toml"
PYPROJECT_TABLE = ("tool", "snippetctl")

ENV_KEYS = {
    "language": "SNIPPETCTL_LANGUAGE",
    "out": "SNIPPETCTL_OUT",
    "jobs": "SNIPPETCTL_JOBS",
    "on_read_error": "SNIPPETCTL_ON_READ_ERROR",
    "timeout": "SNIPPETCTL_TIMEOUT",
}


@dataclass(frozen=True)
class Settings:
    language: str = "python"
    paths: tuple[str, ...] = (".",)
    out: str = "snippetctl-report.json"
    jobs: int = 1
    on_read_error: ReadPolicy = "abort"
    timeout: float | None = None
    exclude: tuple[str, ...] = ()

    def override(self, **values: Any) -> "Settings":
        given = {key: value for key, value in values.items() if value is not None}
        return _checked(replace(self, **_coerce(given, source="command line")))


def _fail(source: str, message: str) -> ScriptError:
    return ScriptError(f"invalid configuration in {source}: {message}", ERR_CONFIG, kind="config_error")


def _as_str_tuple(key: str, value: Any, source: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise _fail(source, f"`{key}` must be a string or a list of strings")


def _coerce(raw: Mapping[str, Any], source: str) -> dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise _fail(source, f"unknown key(s): {', '.join(unknown)}")
    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key in {"paths", "exclude"}:
            out[key] = _as_str_tuple(key, value, source)
        elif key == "jobs":
            try:
                out[key] = int(value)
            except (TypeError, ValueError):
                raise _fail(source, f"`jobs` must be an integer, got {value!r}") from None
        elif key == "timeout":
            try:
                out[key] = float(value)
            except (TypeError, ValueError):
                raise _fail(source, f"`timeout` must be a number, got {value!r}") from None
        else:
            if not isinstance(value, str):
                raise _fail(source, f"`{key}` must be a string")
            out[key] = value
    return out


def _checked(settings: Settings) -> Settings:
    if settings.jobs < 1:
        raise _fail("settings", f"`jobs` must be >= 1, got {settings.jobs}")
    if settings.timeout is not None and settings.timeout <= 0:
        raise _fail("settings", f"`timeout` must be positive, got {settings.timeout}")
    if settings.on_read_error not in READ_POLICIES:
        raise _fail("settings", f"`on_read_error` must be one of {', '.join(READ_POLICIES)}")
    language = settings.language.strip().lower()
    if not language:
        raise _fail("settings", "`language` must not be empty")
    # fence markers are matched case-sensitively against this lower-case tag
    return replace(settings, language=language)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ScriptError(f"cannot read config {path}: {exc}", ERR_CONFIG, kind="config_error") from exc
    except tomllib.TOMLDecodeError as exc:
        raise _fail(str(path), str(exc)) from exc


def find_config(cwd: Path) -> Path | None:
    candidate = cwd / CONFIG_FILE
    if candidate.is_file():
        return candidate
    pyproject = cwd / "pyproject.toml"
    if pyproject.is_file():
        return pyproject
    return None


def file_values(path: Path) -> dict[str, Any]:
    payload = _read_toml(path)
    if path.name != "pyproject.toml":
        return payload
    table: Any = payload
    for key in PYPROJECT_TABLE:
        table = table.get(key, {}) if isinstance(table, dict) else {}
    if not isinstance(table, dict):
        raise _fail(str(path), "[tool.snippetctl] must be a table")
    return table


def env_values() -> dict[str, str]:
    return read_env(ENV_KEYS)


def load_settings(config_path: Path | None = None, cwd: Path | None = None) -> Settings:
    base = Settings()
    path = config_path if config_path is not None else find_config((cwd or Path.cwd()).resolve())
    if path is not None:
        base = replace(base, **_coerce(file_values(path), source=str(path)))
    base = replace(base, **_coerce(env_values(), source="environment"))
    return _checked(base)
