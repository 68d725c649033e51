from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from league_integrity.datafiles.reader import (
    DataFileError,
    parse_dataset,
    parse_rows,
    read_data_file,
    read_dataset,
    split_line,
)
from league_integrity.datafiles.writer import (
    backup_path,
    serialize_dataset,
    serialize_rows,
    write_archive,
    write_dataset,
)
from league_integrity.models.row import Row
from league_integrity.models.schema import FILE_ORDER, FILE_SCHEMAS


def test_split_line_keeps_empty_cells():
    assert split_line("1,,KORE,,") == ["1", "", "KORE", "", ""]
    assert split_line("a,b\r") == ["a", "b"]


def test_parse_rows_handles_crlf_blank_lines_and_width():
    schema = FILE_SCHEMAS["settings.txt"]
    content = "2,match_stagetype,league\r\n\r\n   \n4,MaxTeams\n5,a,b,extra\n"
    rows = parse_rows(content, schema)
    assert [r.values["competition_line"] for r in rows] == ["2", "4", "5"]
    assert rows[0].values == {"competition_line": "2", "rule": "match_stagetype", "value": "league"}
    assert rows[0].width == 3
    # 短い行は空セルで補完
    assert rows[1].values["value"] == ""
    assert rows[1].width == 2
    assert rows[2].width == 4
    assert rows[2].values["value"] == "b"


def test_parse_rows_empty_content():
    assert parse_rows("", FILE_SCHEMAS["tasks.txt"]) == []


def test_parse_rows_assigns_distinct_identities(sample_files):
    rows = parse_rows(sample_files["compobj.txt"], FILE_SCHEMAS["compobj.txt"])
    assert len({r.identity for r in rows}) == len(rows) == 5


def test_parse_dataset_is_case_insensitive_and_complete():
    dataset = parse_dataset({"CompObj.TXT": "1,1,KORE,Korea,\n", "teams.txt": "ignored\n"})
    assert list(dataset) == FILE_ORDER
    assert len(dataset["compobj.txt"]) == 1
    assert dataset["schedule.txt"] == []


def test_parse_dataset_strips_file_names():
    dataset = parse_dataset({" Settings.txt ": "2,match_stagetype,league\n", "": "x\n"})
    assert dataset["settings.txt"][0].values["value"] == "league"
    assert sum(len(rows) for rows in dataset.values()) == 1


def test_read_dataset_missing_file_reads_empty(tmp_path: Path, sample_files):
    (tmp_path / "compobj.txt").write_text(sample_files["compobj.txt"], encoding="utf-8")
    dataset = read_dataset(tmp_path)
    assert len(dataset["compobj.txt"]) == 5
    assert dataset["weather.txt"] == []


def test_read_dataset_subset(tmp_path: Path, sample_files):
    (tmp_path / "tasks.txt").write_text(sample_files["tasks.txt"], encoding="utf-8")
    dataset = read_dataset(tmp_path, names=["tasks.txt"])
    assert list(dataset) == ["tasks.txt"]


def test_read_dataset_missing_directory(tmp_path: Path):
    with pytest.raises(DataFileError):
        read_dataset(tmp_path / "nope")


def test_read_data_file_undecodable(tmp_path: Path):
    path = tmp_path / "compobj.txt"
    path.write_bytes(b"\xff\xfe\xfa,1\n")
    with pytest.raises(DataFileError):
        read_data_file(path, FILE_SCHEMAS["compobj.txt"])


def test_serialize_rows_column_order():
    schema = FILE_SCHEMAS["standings.txt"]
    rows = [Row(values={"parameter": "", "rule": "Points", "stage_line": "5"})]
    assert serialize_rows(rows, schema) == "5,Points,"


def test_serialize_rows_rejects_delimiters():
    schema = FILE_SCHEMAS["settings.txt"]
    rows = [Row(values={"competition_line": "2", "rule": "a,b", "value": ""})]
    with pytest.raises(DataFileError):
        serialize_rows(rows, schema)


def test_serialize_rows_keeps_parsed_width_and_overflow():
    schema = FILE_SCHEMAS["compobj.txt"]
    rows = parse_rows("1,1,KORE,Korea,,EXTRA\n2,2,C1,Cup\n", schema)
    assert rows[0].overflow == ("EXTRA",)
    assert serialize_rows(rows, schema) == "1,1,KORE,Korea,,EXTRA\n2,2,C1,Cup"


def test_serialize_rows_short_row_writes_later_value():
    schema = FILE_SCHEMAS["compobj.txt"]
    rows = parse_rows("2,2,C1,Cup\n", schema)
    rows[0].values["parent_id"] = "1"
    assert serialize_rows(rows, schema) == "2,2,C1,Cup,1"


def test_serialize_then_parse_preserves_content(sample_files):
    dataset = parse_dataset(sample_files)
    serialized = serialize_dataset(dataset)
    for name in FILE_ORDER:
        assert serialized[name] + "\n" == sample_files[name]


def test_backup_path():
    assert backup_path(Path("data/compobj.txt")) == Path("data/compobj_backup.txt")


def test_write_dataset_creates_backups(tmp_path: Path, sample_files):
    dataset = parse_dataset(sample_files)
    first = write_dataset(tmp_path, dataset)
    assert [s.name for s in first] == FILE_ORDER
    assert all(s.backup is None for s in first)
    assert (tmp_path / "compobj.txt").read_text(encoding="utf-8") == sample_files["compobj.txt"]

    dataset["compobj.txt"][0].values["name"] = "Republic of Korea"
    second = write_dataset(tmp_path, dataset)
    assert second[0].backup == tmp_path / "compobj_backup.txt"
    assert second[0].backup.read_text(encoding="utf-8") == sample_files["compobj.txt"]
    assert "Republic of Korea" in (tmp_path / "compobj.txt").read_text(encoding="utf-8")


def test_write_dataset_without_backup_and_empty_files(tmp_path: Path):
    (tmp_path / "tasks.txt").write_text("old\n", encoding="utf-8")
    saved = write_dataset(tmp_path, {}, backup=False)
    assert all(s.bytes == 0 for s in saved)
    assert (tmp_path / "tasks.txt").read_text(encoding="utf-8") == ""
    assert not (tmp_path / "tasks_backup.txt").exists()


def test_write_dataset_serialization_failure_writes_nothing(tmp_path: Path):
    rows = [Row(values={"competition_line": "2", "rule": "bad\nrule", "value": ""})]
    with pytest.raises(DataFileError):
        write_dataset(tmp_path, {"settings.txt": rows})
    assert list(tmp_path.iterdir()) == []


def test_write_archive(tmp_path: Path, sample_files):
    target = write_archive(tmp_path / "out" / "league.zip", parse_dataset(sample_files))
    with zipfile.ZipFile(target) as zf:
        assert sorted(zf.namelist()) == sorted(FILE_ORDER)
        assert zf.read("settings.txt").decode("utf-8") == sample_files["settings.txt"]
        assert zf.getinfo("compobj.txt").compress_type == zipfile.ZIP_DEFLATED
