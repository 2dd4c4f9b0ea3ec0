from __future__ import annotations

from pathlib import Path

import pytest

from defect_seeker.cli import main


def _run(tmp_path: Path, *argv: str) -> None:
    main(["--data-dir", str(tmp_path), *argv])


def test_list_prints_page_and_persists_filters(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(tmp_path, "list", "--severity", "Critical")
    out = capsys.readouterr().out
    assert "DEF-101" in out
    assert "DEF-102" not in out
    assert "Page 1 of 1 - 1 matching, 2 total." in out

    _run(tmp_path, "list")
    assert "DEF-102" not in capsys.readouterr().out

    _run(tmp_path, "list", "--reset")
    assert "DEF-102" in capsys.readouterr().out


def test_bulk_status_with_ids(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(tmp_path, "login", "charlie@defectseeker.pro")
    _run(tmp_path, "bulk-status", "Closed", "DEF-101")
    assert "Set 1 defect(s) to Closed." in capsys.readouterr().out

    _run(tmp_path, "list", "--status", "Closed")
    assert "DEF-101" in capsys.readouterr().out


def test_bulk_delete_declined_at_prompt(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _run(tmp_path, "login", "alice@defectseeker.pro")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    _run(tmp_path, "bulk-delete", "--page-all")
    assert "Deleted 0 defect(s)." in capsys.readouterr().out

    _run(tmp_path, "bulk-delete", "--page-all", "--yes")
    assert "Deleted 2 defect(s)." in capsys.readouterr().out


def test_permission_error_exits_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(tmp_path, "login", "bob@defectseeker.pro")
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path, "bulk-delete", "DEF-101", "--yes")
    assert exc.value.code == 2
    assert "Error:" in capsys.readouterr().err


def test_unknown_defect_exits_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path, "show", "DEF-999")
    assert exc.value.code == 2
    assert "Defect not found: DEF-999" in capsys.readouterr().err


def test_init_writes_seed_documents(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _run(tmp_path, "init")
    assert "Wrote 2 defect(s) and 4 user(s)" in capsys.readouterr().out
    assert (tmp_path / "ds_defects.json").is_file()
    assert (tmp_path / "ds_projects.json").is_file()
