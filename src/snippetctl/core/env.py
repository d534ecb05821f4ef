"""Centralized environment variable helpers."""

from __future__ import annotations

import os
from typing import Mapping


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def read_env(names: Mapping[str, str]) -> dict[str, str]:
    """Map setting keys to the stripped, non-blank values of their variables."""
    out: dict[str, str] = {}
    for key, name in names.items():
        value = getenv(name)
        if value is not None and value.strip():
            out[key] = value.strip()
    return out
