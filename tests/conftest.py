# Shared pytest fixtures
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from league_integrity.logging.init import reset_logging
from league_integrity.services.workspace import Workspace

# 全ルールを満たす最小データセット (federation -> competition -> season -> stage -> group)
SAMPLE_FILES: dict[str, str] = {
    "compobj.txt": (
        "1,1,KORE,Korea,\n"
        "2,2,C1,K League,1\n"
        "3,3,S1,Season 2024,2\n"
        "4,4,ST1,Regular_Season,3\n"
        "5,5,G1,Group_A,4\n"
    ),
    "schedule.txt": "4,1,M1,T1,T2,20240301,Main Stadium,1900\n",
    "tasks.txt": "FillWithTeams,OnStart,Populate,2,,\n",
    "advancement.txt": "5,1,4,1,Promotion\n",
    "settings.txt": "2,match_stagetype,league\n4,MaxTeams,16\n",
    "weather.txt": "1,Summer,Default,Clear,22,5\n",
    "standings.txt": "5,Points,\n",
    "objectives.txt": "2,ReachRound,QuarterFinal,High,BudgetBoost\n",
}

SAMPLE_RECORDS: dict[str, list[dict[str, str]]] = {
    "compobj.txt": [
        {"id": "1", "level": "1", "code": "KORE", "name": "Korea", "parent_id": ""},
        {"id": "2", "level": "2", "code": "C1", "name": "K League", "parent_id": "1"},
        {"id": "3", "level": "3", "code": "S1", "name": "Season 2024", "parent_id": "2"},
        {"id": "4", "level": "4", "code": "ST1", "name": "Regular_Season", "parent_id": "3"},
        {"id": "5", "level": "5", "code": "G1", "name": "Group_A", "parent_id": "4"},
    ],
    "schedule.txt": [
        {"stage_id": "4", "round": "1", "match_id": "M1", "home_ref": "T1", "away_ref": "T2",
         "date": "20240301", "stadium": "Main Stadium", "time": "1900"},
    ],
    "tasks.txt": [
        {"task_type": "FillWithTeams", "trigger": "OnStart", "action": "Populate",
         "target_stage": "2", "param1": "", "param2": ""},
    ],
    "advancement.txt": [
        {"stage_from": "5", "position_from": "1", "stage_to": "4", "position_to": "1",
         "type": "Promotion"},
    ],
    "settings.txt": [
        {"competition_line": "2", "rule": "match_stagetype", "value": "league"},
        {"competition_line": "4", "rule": "MaxTeams", "value": "16"},
    ],
    "weather.txt": [
        {"competition_line": "1", "season": "Summer", "region": "Default",
         "weather_type": "Clear", "temperature": "22", "chance_of_rain": "5"},
    ],
    "standings.txt": [
        {"stage_line": "5", "rule": "Points", "parameter": ""},
    ],
    "objectives.txt": [
        {"competition_line": "2", "objective_type": "ReachRound", "target_value": "QuarterFinal",
         "importance": "High", "reward": "BudgetBoost"},
    ],
}


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_records() -> dict[str, list[dict[str, str]]]:
    return {name: [dict(r) for r in rows] for name, rows in SAMPLE_RECORDS.items()}


@pytest.fixture()
def make_workspace(sample_records) -> Callable[..., Workspace]:
    """Factory: sample dataset with per-file overrides (list of dicts per file)."""
    def _make(**overrides: list[dict[str, str]]) -> Workspace:
        records = dict(sample_records)
        for key, rows in overrides.items():
            records[f"{key}.txt"] = rows
        return Workspace.from_records(records)
    return _make


@pytest.fixture()
def workspace(make_workspace) -> Workspace:
    return make_workspace()


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LEAGUE_DATA_DIR", raising=False)
    return tmp_path


@pytest.fixture()
def sample_config_yaml() -> str:
    return """data_directory: ./data
backup: true
log_directory: ./logs
stage_type_keys:
  - match_stagetype
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "editor.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def data_files(temp_workdir: Path) -> Path:
    data_dir = temp_workdir / "data"
    for name, content in SAMPLE_FILES.items():
        (data_dir / name).write_text(content, encoding="utf-8")
    return data_dir


@pytest.fixture()
def sample_files() -> dict[str, str]:
    return dict(SAMPLE_FILES)
