from __future__ import annotations

from dataclasses import dataclass, field

"""Reference schema for the eight competition data files.

Each file is a comma delimited text file without a header line. The column
order declared here is the on-disk order. ``references`` lists the columns
whose value is a line id (1-based position) in the hierarchy file.

The schema is static: callers never register files at runtime.
"""

__all__ = [
    "ColumnSpec",
    "FileSchema",
    "HIERARCHY_FILE",
    "FILE_SCHEMAS",
    "FILE_ORDER",
    "NUMBER",
    "TEXT",
    "get_schema",
]

NUMBER = "number"
TEXT = "text"

HIERARCHY_FILE = "compobj.txt"


@dataclass(frozen=True)
class ColumnSpec:
    """One column of a data file."""
    key: str
    label: str
    kind: str = TEXT  # number | text
    read_only: bool = False

    @property
    def numeric(self) -> bool:
        return self.kind == NUMBER


@dataclass(frozen=True)
class FileSchema:
    """Column contract of one data file.

    Attributes:
        name: File name on disk (also the dataset key)
        label: Human readable title
        description: Short description of the file contents
        columns: Ordered column specs (on-disk order)
        references: Column keys holding hierarchy line ids
        defaults: Values of a freshly inserted row
    """
    name: str
    label: str
    description: str
    columns: tuple[ColumnSpec, ...]
    references: tuple[str, ...] = ()
    defaults: dict[str, str] = field(default_factory=dict)

    @property
    def column_keys(self) -> list[str]:
        return [c.key for c in self.columns]

    def column(self, key: str) -> ColumnSpec | None:
        for col in self.columns:
            if col.key == key:
                return col
        return None

    def default_row(self) -> dict[str, str]:
        """Return a full row of default values (missing columns are empty)."""
        return {c.key: self.defaults.get(c.key, "") for c in self.columns}


def _num(key: str, label: str, read_only: bool = False) -> ColumnSpec:
    return ColumnSpec(key=key, label=label, kind=NUMBER, read_only=read_only)


def _text(key: str, label: str) -> ColumnSpec:
    return ColumnSpec(key=key, label=label, kind=TEXT)


FILE_SCHEMAS: dict[str, FileSchema] = {
    HIERARCHY_FILE: FileSchema(
        name=HIERARCHY_FILE,
        label="Competition Structure",
        description="Defines competition hierarchy and structure.",
        columns=(
            _num("id", "Line", read_only=True),
            _num("level", "Level"),
            _text("code", "Code"),
            _text("name", "Name"),
            _num("parent_id", "Parent Line"),
        ),
        references=("parent_id",),
        defaults={"level": "1", "code": "CNEW", "name": "New Competition"},
    ),
    "schedule.txt": FileSchema(
        name="schedule.txt",
        label="Schedule Editor",
        description="Match order and fixture mapping.",
        columns=(
            _num("stage_id", "Stage Line"),
            _num("round", "Round"),
            _text("match_id", "Match ID"),
            _text("home_ref", "Home Ref"),
            _text("away_ref", "Away Ref"),
            _text("date", "Date"),
            _text("stadium", "Stadium"),
            _text("time", "Time"),
        ),
        references=("stage_id",),
        defaults={
            "round": "1",
            "match_id": "M1",
            "date": "20230801",
            "stadium": "Default",
            "time": "1900",
        },
    ),
    "tasks.txt": FileSchema(
        name="tasks.txt",
        label="Task Automation",
        description="Automated game events and triggers.",
        columns=(
            _text("task_type", "Task Type"),
            _text("trigger", "Trigger"),
            _text("action", "Action"),
            _num("target_stage", "Target Stage"),
            _text("param1", "Param 1"),
            _text("param2", "Param 2"),
        ),
        references=("target_stage",),
        defaults={"task_type": "FillWithTeams", "trigger": "OnStart", "action": "Populate"},
    ),
    "advancement.txt": FileSchema(
        name="advancement.txt",
        label="Advancement Rules",
        description="Promotion, relegation, and playoff flows.",
        columns=(
            _num("stage_from", "Stage From"),
            _num("position_from", "Position From"),
            _num("stage_to", "Stage To"),
            _num("position_to", "Position To"),
            _text("type", "Type"),
        ),
        references=("stage_from", "stage_to"),
        defaults={"position_from": "1", "position_to": "1", "type": "Promotion"},
    ),
    "settings.txt": FileSchema(
        name="settings.txt",
        label="Competition Settings",
        description="Competition-specific configuration.",
        columns=(
            _num("competition_line", "Competition Line"),
            _text("rule", "Rule"),
            _text("value", "Value"),
        ),
        references=("competition_line",),
        defaults={"rule": "MaxTeams", "value": "16"},
    ),
    "weather.txt": FileSchema(
        name="weather.txt",
        label="Weather Config",
        description="Match environment and conditions.",
        columns=(
            _num("competition_line", "Competition Line"),
            _text("season", "Season"),
            _text("region", "Region"),
            _text("weather_type", "Weather Type"),
            _num("temperature", "Temperature"),
            _num("chance_of_rain", "Chance Of Rain"),
        ),
        references=("competition_line",),
        defaults={
            "season": "Summer",
            "region": "Default",
            "weather_type": "Clear",
            "temperature": "22",
            "chance_of_rain": "5",
        },
    ),
    "standings.txt": FileSchema(
        name="standings.txt",
        label="Standings Rules",
        description="Standings table configurations and ranking priorities.",
        columns=(
            _num("stage_line", "Stage Line"),
            _text("rule", "Rule"),
            _text("parameter", "Parameter"),
        ),
        references=("stage_line",),
        defaults={"rule": "Points"},
    ),
    "objectives.txt": FileSchema(
        name="objectives.txt",
        label="Objectives",
        description="Manager and club objectives.",
        columns=(
            _num("competition_line", "Competition Line"),
            _text("objective_type", "Objective Type"),
            _text("target_value", "Target Value"),
            _text("importance", "Importance"),
            _text("reward", "Reward"),
        ),
        references=("competition_line",),
        defaults={
            "objective_type": "ReachRound",
            "target_value": "QuarterFinal",
            "importance": "High",
            "reward": "BudgetBoost",
        },
    ),
}

# 保存・参照書き換えの順序 (階層ファイルが常に先頭)
FILE_ORDER: list[str] = list(FILE_SCHEMAS.keys())


def get_schema(name: str) -> FileSchema | None:
    """Look up a file schema by name (case-insensitive, surrounding blanks ignored)."""
    key = name.strip().lower()
    return FILE_SCHEMAS.get(key)
