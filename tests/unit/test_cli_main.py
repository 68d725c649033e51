from __future__ import annotations

import re
import zipfile
from pathlib import Path

import pytest

from league_integrity.cli.main import EXIT_FATAL, EXIT_SUCCESS, EXIT_VALIDATION_ERRORS, main

SUMMARY_RE = re.compile(
    r"^SUMMARY files=8 rows=(\d+) errors=(\d+) warnings=(\d+) "
    r"references_updated=(\d+) broken=(\d+) missing_parents=(\d+)$",
    re.MULTILINE,
)


def _summary(out: str) -> tuple[int, ...]:
    matches = SUMMARY_RE.findall(out)
    assert len(matches) == 1, out
    return tuple(int(v) for v in matches[0])


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    code = main(["validate"])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR config:" in out


def test_missing_data_directory_is_fatal(write_config: Path, capsys):
    write_config.write_text("data_directory: ./nowhere\n", encoding="utf-8")
    code = main(["validate"])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR directory not found:" in out


def test_subcommand_is_required(temp_workdir: Path):
    with pytest.raises(SystemExit):
        main([])


def test_validate_clean_dataset(write_config: Path, data_files: Path, temp_workdir: Path, capsys):
    code = main(["validate"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert _summary(out) == (13, 0, 0, 0, 0, 0)
    assert list((temp_workdir / "logs").iterdir()) == []


def test_validate_reports_errors(write_config: Path, data_files: Path, temp_workdir: Path, capsys):
    (data_files / "schedule.txt").write_text(
        "9,1,M1,T1,T2,20240301,Main Stadium,1900\n", encoding="utf-8"
    )
    report = temp_workdir / "reports" / "issues.csv"
    code = main(["validate", "--report", str(report)])
    out = capsys.readouterr().out

    assert code == EXIT_VALIDATION_ERRORS
    assert "ERROR schedule.txt:1 UNKNOWN_STAGE" in out
    rows, errors, warnings, updated, broken, missing = _summary(out)
    assert (rows, errors, broken, missing) == (13, 1, 1, 0)
    logs = list((temp_workdir / "logs").glob("validation-*.log"))
    assert len(logs) == 1
    assert report.exists()
    assert "UNKNOWN_STAGE" in report.read_text(encoding="utf-8")


def test_renumber_saves_rewritten_files(write_config: Path, data_files: Path, sample_files, capsys):
    (data_files / "compobj.txt").write_text("0,1,ZZZ,Other,\n" + sample_files["compobj.txt"], encoding="utf-8")
    code = main(["renumber"])
    out = capsys.readouterr().out

    assert code == EXIT_SUCCESS
    compobj = (data_files / "compobj.txt").read_text(encoding="utf-8").splitlines()
    assert [line.split(",")[0] for line in compobj] == ["1", "2", "3", "4", "5", "6"]
    assert compobj[2] == "3,2,C1,K League,2"
    assert (data_files / "schedule.txt").read_text(encoding="utf-8").startswith("5,1,M1")
    assert (data_files / "standings.txt").read_text(encoding="utf-8") == "6,Points,\n"
    backup = data_files / "compobj_backup.txt"
    assert backup.read_text(encoding="utf-8").startswith("0,1,ZZZ")
    assert _summary(out)[3:] == (13, 0, 0)


def test_autofix_command(write_config: Path, data_files: Path, sample_files, capsys):
    (data_files / "compobj.txt").write_text(
        sample_files["compobj.txt"].replace("Regular_Season", "Regular-Season"), encoding="utf-8"
    )
    code = main(["autofix"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "autofix renamed_stages=1 blanked_cells=0" in out
    assert "Regular_Season" in (data_files / "compobj.txt").read_text(encoding="utf-8")


def test_inspect_prints_every_file(write_config: Path, data_files: Path, capsys):
    code = main(["inspect"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "FILE: compobj.txt rows=5" in out
    assert "FILE: objectives.txt rows=1" in out
    assert _summary(out)[0] == 13


def test_export_writes_archive(write_config: Path, data_files: Path, temp_workdir: Path, capsys):
    target = temp_workdir / "dist" / "league.zip"
    code = main(["export", "--output", str(target)])
    capsys.readouterr()
    assert code == EXIT_SUCCESS
    with zipfile.ZipFile(target) as zf:
        assert "compobj.txt" in zf.namelist()


def test_export_refuses_invalid_dataset(write_config: Path, data_files: Path, temp_workdir: Path, capsys):
    (data_files / "standings.txt").write_text("x,Points,\n", encoding="utf-8")
    target = temp_workdir / "dist" / "league.zip"
    code = main(["export", "--output", str(target)])
    out = capsys.readouterr().out
    assert code == EXIT_VALIDATION_ERRORS
    assert "ERROR export aborted" in out
    assert not target.exists()


def test_debug_flag(write_config: Path, data_files: Path, capsys):
    code = main(["--debug", "inspect"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "DEBUG debug mode enabled" in out


def test_dotenv_overrides_data_directory(write_config: Path, temp_workdir: Path, sample_files, monkeypatch, capsys):
    # teardown で環境変数を元に戻すため先に登録しておく
    monkeypatch.setenv("LEAGUE_DATA_DIR", "./data")
    other = temp_workdir / "other"
    other.mkdir()
    for name, content in sample_files.items():
        (other / name).write_text(content, encoding="utf-8")
    (temp_workdir / ".env").write_text("LEAGUE_DATA_DIR=./other\n", encoding="utf-8")

    code = main(["validate"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "Processing files from: other" in out
