from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from helpers import fence, run_snippetctl, write_doc

from snippetctl import __version__
from snippetctl.cli import main
from snippetctl.core.exit_codes import ERR_CONFIG, ERR_INTERNAL, ERR_IO, ERR_USAGE, ERR_VALIDATION


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    write_doc(tmp_path, "docs/a.md", "# A\n", fence("x = ("), fence("ok = 1"))
    write_doc(tmp_path, "docs/b.md", "# B\n", fence("echo hi", "bash"), fence("def f(:\n    pass"))
    return tmp_path


def test_scan_writes_report_and_exits_zero_with_failures(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--quiet", "scan", "docs", "--out", "out/report.json"])
    assert code == 0
    entries = json.loads((workspace / "out/report.json").read_text(encoding="utf-8"))
    assert [row["file"] for row in entries] == ["docs/a.md", "docs/b.md"]
    assert [row["content"] for row in entries] == ["x = (", "def f(:\n    pass"]
    out = capsys.readouterr().out
    assert "scanned 2 document(s), 3 `python` block(s): 2 syntax error(s)" in out


def test_scan_json_summary(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--quiet", "--run-id", "t-json", "scan", "docs", "--out", "r.json", "--json"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {
        "blocks": 3,
        "documents": 2,
        "failures": 2,
        "language": "python",
        "report": "r.json",
        "run_id": "t-json",
        "schema_version": 1,
        "skipped": 0,
        "status": "ok",
        "tool": "snippetctl",
    }


def test_scan_uses_config_file(workspace: Path) -> None:
    (workspace / "snippetctl.toml").write_text(
        'paths = ["docs/b.md"]\nout = "from-config.json"\njobs = 2\n', encoding="utf-8"
    )
    assert main(["--quiet", "scan"]) == 0
    entries = json.loads((workspace / "from-config.json").read_text(encoding="utf-8"))
    assert [row["file"] for row in entries] == ["docs/b.md"]


def test_scan_other_language(workspace: Path) -> None:
    write_doc(workspace, "docs/c.md", fence('{"a": 1}', "json"), fence("{oops}", "json"))
    assert main(["--quiet", "scan", "docs/c.md", "--language", "json", "--out", "j.json"]) == 0
    entries = json.loads((workspace / "j.json").read_text(encoding="utf-8"))
    assert [row["content"] for row in entries] == ["{oops}"]


def test_scan_language_tag_is_case_insensitive(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--quiet", "scan", "docs", "--language", "Python", "--out", "r.json"]) == 0
    entries = json.loads((workspace / "r.json").read_text(encoding="utf-8"))
    assert [row["content"] for row in entries] == ["x = (", "def f(:\n    pass"]
    assert "3 `python` block(s)" in capsys.readouterr().out


def test_scan_missing_document_aborts(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--quiet", "scan", "docs/a.md", "docs/missing.md", "--out", "r.json"])
    assert code == ERR_IO
    assert not (workspace / "r.json").exists()
    assert "cannot read document docs/missing.md" in capsys.readouterr().err


def test_scan_skip_policy_writes_report(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--quiet", "scan", "docs/missing.md", "docs/a.md", "--on-read-error", "skip", "--out", "r.json"])
    assert code == 0
    assert len(json.loads((workspace / "r.json").read_text(encoding="utf-8"))) == 1
    assert "action=skip-unreadable" in capsys.readouterr().err


def test_unknown_language_is_usage_error(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--json", "scan", "docs", "--language", "cobol"])
    assert code == ERR_USAGE
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["status"] == "error"
    assert err["errors"][0]["kind"] == "unknown_language"


def test_invalid_jobs_is_config_error(workspace: Path) -> None:
    assert main(["--quiet", "scan", "docs", "--jobs", "0"]) == ERR_CONFIG


def test_unexpected_exception_maps_to_internal_error(
    workspace: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def boom(*args: object, **kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(sys.modules["snippetctl.cli.main"], "scan", boom)
    assert main(["--quiet", "--json", "scan", "docs", "--out", "r.json"]) == ERR_INTERNAL
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["errors"][0] == {"code": ERR_INTERNAL, "kind": "internal_error", "message": "internal error: boom"}
    assert not (workspace / "r.json").exists()


def test_info_logs_go_to_stderr(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--log-json", "--run-id", "t-log", "scan", "docs", "--out", "r.json"]) == 0
    captured = capsys.readouterr()
    events = [json.loads(line) for line in captured.err.splitlines()]
    assert {event["run_id"] for event in events} == {"t-log"}
    assert [event["action"] for event in events] == ["scan", "written"]
    assert "syntax error" not in captured.err


def test_languages_listing(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["languages", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [row["name"] for row in payload["languages"]] == ["bash", "json", "python", "toml", "yaml"]


def test_validate_report_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    good = tmp_path / "good.json"
    good.write_text('[{"file": "a.md", "content": "x", "message": "bad"}]\n', encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text('{"file": "a.md"}\n', encoding="utf-8")
    assert main(["validate-report", "--file", str(good)]) == 0
    assert main(["validate-report", "--file", str(bad)]) == ERR_VALIDATION
    assert "schema validation failed" in capsys.readouterr().err


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"snippetctl {__version__}"


def test_conflicting_output_flags(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--format", "text", "--json", "version"]) == ERR_USAGE


@pytest.mark.integration
def test_module_entrypoint_runs_scan(tmp_path: Path) -> None:
    write_doc(tmp_path, "guide.md", fence("print('hi'"))
    proc = run_snippetctl("--quiet", "scan", "guide.md", "--out", "report.json", cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr
    entries = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
    assert entries[0]["file"] == "guide.md"
