"""Syntax-only parsers keyed by fence language tag.

A parser takes source text and returns ``None`` when it parses cleanly, or a
human-readable message describing the first syntax error. Parsers may also
raise; the validator turns that into a failure. None of them executes code.
"""

from __future__ import annotations

import ast
import json
import shutil
import subprocess
import tomllib
from dataclasses import dataclass
from typing import Callable

import yaml

from .core.errors import ScriptError
from .core.exit_codes import ERR_PREREQ, ERR_USAGE

ParseFn = Callable[[str], str | None]


def parse_python(source: str) -> str | None:
    try:
        ast.parse(source, filename="<snippet>", mode="exec")
    except SyntaxError as exc:
        if exc.lineno:
            return f"line {exc.lineno}: {exc.msg}"
        return exc.msg
    return None


def parse_json(source: str) -> str | None:
    try:
        json.loads(source)
    except json.JSONDecodeError as exc:
        return f"line {exc.lineno} column {exc.colno}: {exc.msg}"
    return None


def parse_yaml(source: str) -> str | None:
    # compose builds the node graph only; no python objects are constructed
    try:
        for _node in yaml.compose_all(source, Loader=yaml.SafeLoader):
            pass
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        problem = exc.problem or exc.context or "invalid YAML"
        if mark is None:
            return problem
        return f"line {mark.line + 1} column {mark.column + 1}: {problem}"
    except yaml.YAMLError as exc:
        return str(exc) or type(exc).__name__
    return None


def parse_toml(source: str) -> str | None:
    try:
        tomllib.loads(source)
    except tomllib.TOMLDecodeError as exc:
        return str(exc)
    return None


def bash_parser(timeout: float | None = None) -> ParseFn:
    def parse_bash(source: str) -> str | None:
        proc = subprocess.run(
            ["bash", "-n"],
            input=source,
            text=True,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
        if proc.returncode == 0:
            return None
        return proc.stderr.strip() or f"bash -n exited with code {proc.returncode}"

    return parse_bash


@dataclass(frozen=True)
class LanguageDef:
    name: str
    aliases: tuple[str, ...]
    description: str
    build: Callable[[float | None], ParseFn]
    requires: tuple[str, ...] = ()

    @property
    def tags(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


LANGUAGES: tuple[LanguageDef, ...] = (
    LanguageDef("python", ("py", "python3"), "python grammar via ast.parse", lambda _timeout: parse_python),
    LanguageDef("json", (), "strict JSON via json.loads", lambda _timeout: parse_json),
    LanguageDef("yaml", ("yml",), "YAML node composition via PyYAML SafeLoader", lambda _timeout: parse_yaml),
    LanguageDef("toml", (), "TOML via tomllib", lambda _timeout: parse_toml),
    LanguageDef("bash", ("sh", "shell"), "POSIX shell via `bash -n`", bash_parser, requires=("bash",)),
)


def languages() -> list[LanguageDef]:
    return sorted(LANGUAGES, key=lambda lang: lang.name)


def find_language(tag: str) -> LanguageDef:
    wanted = tag.strip().lower()
    for lang in LANGUAGES:
        if wanted in lang.tags:
            return lang
    known = ", ".join(sorted(tag for lang in LANGUAGES for tag in lang.tags))
    raise ScriptError(f"unknown language `{tag}` (known: {known})", ERR_USAGE, kind="unknown_language")


def resolve_parser(tag: str, timeout: float | None = None) -> ParseFn:
    lang = find_language(tag)
    missing = [tool for tool in lang.requires if shutil.which(tool) is None]
    if missing:
        raise ScriptError(
            f"language `{lang.name}` requires missing tool(s): {', '.join(missing)}",
            ERR_PREREQ,
            kind="missing_prerequisite",
        )
    return lang.build(timeout)
