from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from snippetctl.model import CodeBlock

ROOT = Path(__file__).resolve().parents[1]


def fence(body: str, language: str = "python") -> str:
    return f"```{language}\n{body}\n```\n"


def write_doc(root: Path, name: str, *parts: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(parts), encoding="utf-8")
    return path


def block(content: str, source: str = "doc.md") -> CodeBlock:
    return CodeBlock(source_file=Path(source), content=content)


def run_snippetctl(*args: str, cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    env.pop("CI", None)
    env.setdefault("RUN_ID", "pytest-run")
    return subprocess.run(
        [sys.executable, "-m", "snippetctl", *args],
        cwd=cwd,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
