from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ..models.issue import Issue, ValidationReport
from ..models.row import HierarchyEntry, Row, hierarchy_entries, parse_int
from ..models.schema import FILE_SCHEMAS, HIERARCHY_FILE

"""Dataset validator.

``validate`` is a pure function over the full eight-file dataset. It never
raises for row content: anything malformed becomes an Issue. Rules run in a
fixed order and are all collected:

1. input shape (column count, every file)
2. identity rules of the hierarchy file
3. hierarchy shape (parent exists, precedes the child, level is parent + 1)
4. style (hyphenated stage names, warning)
5. cross-file references, one pass per dependent file
"""

__all__ = [
    "DEFAULT_STAGE_TYPE_KEYS",
    "IdIndex",
    "build_id_index",
    "validate",
]

MAX_LEVEL = 5
FEDERATION_LEVEL = 1
STAGE_LEVEL = 4
GROUP_LEVEL = 5

DEFAULT_STAGE_TYPE_KEYS = ("match_stagetype",)

# schedule.txt の試合ブロック定義は位置で読む (3,4,5 列目)
SCHEDULE_BLOCK_COUNT = "match_id"
SCHEDULE_MIN_GAMES = "home_ref"
SCHEDULE_MAX_GAMES = "away_ref"

# task 引数はテキストの場合もあるため warning 止まり
TASK_ARGUMENT_COLUMNS = ("param1", "param2")


@dataclass
class IdIndex:
    """Lookup of valid hierarchy ids, built once per validation pass."""
    entries: dict[int, HierarchyEntry] = field(default_factory=dict)
    by_level: dict[int, dict[int, HierarchyEntry]] = field(default_factory=dict)

    def get(self, line_id: int) -> HierarchyEntry | None:
        return self.entries.get(line_id)

    def __contains__(self, line_id: object) -> bool:
        return line_id in self.entries

    def level_ids(self, level: int) -> list[int]:
        return list(self.by_level.get(level, {}).keys())


def build_id_index(entries: Iterable[HierarchyEntry]) -> IdIndex:
    index = IdIndex()
    for entry in entries:
        if entry.id is None or entry.id <= 0:
            continue
        if entry.id in index.entries:
            continue  # 重複は DUPLICATE_ID として別途報告、先勝ち
        index.entries[entry.id] = entry
        if entry.level is not None:
            index.by_level.setdefault(entry.level, {})[entry.id] = entry
    return index


def _check_column_counts(name: str, rows: Sequence[Row]) -> list[Issue]:
    schema = FILE_SCHEMAS[name]
    expected = len(schema.columns)
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        if row.width is not None and row.width != expected:
            issues.append(Issue.error(
                name, line, "COLUMN_COUNT",
                f"Expected {expected} columns, found {row.width}.",
            ))
    return issues


def _validate_identity(entries: Sequence[HierarchyEntry]) -> list[Issue]:
    issues: list[Issue] = []
    seen: set[int] = set()
    for entry in entries:
        line = entry.position
        if entry.id is None or entry.id <= 0:
            issues.append(Issue.error(
                HIERARCHY_FILE, line, "INVALID_ID", "Entry is missing a positive numeric ID.",
            ))
        elif entry.id in seen:
            issues.append(Issue.error(
                HIERARCHY_FILE, line, "DUPLICATE_ID", f"Duplicate ID {entry.id}.",
            ))
        else:
            seen.add(entry.id)
        if entry.level is None or not 1 <= entry.level <= MAX_LEVEL:
            shown = entry.level if entry.level is not None else "(none)"
            issues.append(Issue.error(
                HIERARCHY_FILE, line, "INVALID_LEVEL", f"Invalid level {shown}.",
            ))
        if entry.parent_raw and entry.parent_id is None:
            issues.append(Issue.error(
                HIERARCHY_FILE, line, "INVALID_PARENT", "Parent ID must be numeric.",
            ))
    return issues


def _validate_shape(entries: Sequence[HierarchyEntry], index: IdIndex) -> list[Issue]:
    issues: list[Issue] = []
    for entry in entries:
        if not entry.has_parent:
            continue
        parent_id = entry.parent_id
        parent = index.get(parent_id)  # type: ignore[arg-type]
        if parent is None:
            issues.append(Issue.error(
                HIERARCHY_FILE, entry.position, "MISSING_PARENT",
                f"Parent ID {parent_id} does not exist.",
            ))
            continue
        if parent.position >= entry.position:
            issues.append(Issue.error(
                HIERARCHY_FILE, entry.position, "FORWARD_PARENT",
                "Parent must appear before the child in compobj.txt.",
            ))
        if (
            parent.level is not None
            and entry.level is not None
            and parent.level + 1 != entry.level
        ):
            issues.append(Issue.error(
                HIERARCHY_FILE, entry.position, "LEVEL_MISMATCH",
                f"Level {entry.level} must be exactly one greater than parent level {parent.level}.",
            ))
    return issues


def _validate_style(entries: Sequence[HierarchyEntry]) -> list[Issue]:
    return [
        Issue.warning(
            HIERARCHY_FILE, entry.position, "HYPHEN_IN_STAGE",
            "Stage names should not include hyphens. Use underscores instead.",
        )
        for entry in entries
        if entry.level == STAGE_LEVEL and "-" in entry.name
    ]


def _validate_settings(
    rows: Sequence[Row], index: IdIndex, stage_type_keys: Collection[str]
) -> list[Issue]:
    name = "settings.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        target = parse_int(row.get("competition_line"))
        if target is None:
            issues.append(Issue.error(name, line, "INVALID_TARGET", "Target ID must be numeric."))
        elif target not in index:
            issues.append(Issue.error(
                name, line, "UNKNOWN_TARGET",
                f"Referenced ID {target} is not present in compobj.txt.",
            ))
        if row.get("rule").strip() in stage_type_keys and not row.get("value").strip():
            issues.append(Issue.warning(
                name, line, "MISSING_STAGE_TYPE",
                f"Stage settings should define {row.get('rule').strip()}.",
            ))
    return issues


def _validate_advancement(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "advancement.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        source_raw = row.get("stage_from").strip()
        if source_raw:
            source_id = parse_int(source_raw)
            source = index.get(source_id) if source_id is not None else None
            if source_id is None:
                issues.append(Issue.error(
                    name, line, "INVALID_SOURCE", "Source group ID must be numeric.",
                ))
            elif source is None:
                issues.append(Issue.error(
                    name, line, "UNKNOWN_SOURCE_GROUP", f"Source group {source_id} does not exist.",
                ))
            elif source.level != GROUP_LEVEL:
                issues.append(Issue.error(
                    name, line, "SOURCE_NOT_GROUP", f"Source ID {source_id} must be a level 5 group.",
                ))
        dest_raw = row.get("stage_to").strip()
        if dest_raw:
            dest_id = parse_int(dest_raw)
            if dest_id is None:
                issues.append(Issue.error(
                    name, line, "INVALID_DESTINATION", "Destination ID must be numeric.",
                ))
            elif dest_id not in index:
                issues.append(Issue.error(
                    name, line, "UNKNOWN_DESTINATION", f"Destination ID {dest_id} does not exist.",
                ))
        slot = parse_int(row.get("position_from"))
        if slot is not None and slot < 0:
            issues.append(Issue.error(
                name, line, "INVALID_SLOT", "Advancement slot must be positive.",
            ))
    return issues


def _validate_schedule(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "schedule.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        stage_id = parse_int(row.get("stage_id"))
        if stage_id is None:
            issues.append(Issue.error(name, line, "INVALID_STAGE", "Stage ID must be numeric."))
        else:
            stage = index.get(stage_id)
            if stage is None:
                issues.append(Issue.error(
                    name, line, "UNKNOWN_STAGE", f"Stage {stage_id} is not defined in compobj.txt.",
                ))
            elif stage.level != STAGE_LEVEL:
                issues.append(Issue.error(
                    name, line, "STAGE_NOT_LEVEL4", f"Stage {stage_id} must be level 4.",
                ))
        min_games = parse_int(row.get(SCHEDULE_MIN_GAMES))
        max_games = parse_int(row.get(SCHEDULE_MAX_GAMES))
        if min_games is not None and max_games is not None and min_games > max_games:
            issues.append(Issue.error(
                name, line, "RANGE_ERROR", "Minimum games cannot exceed maximum games.",
            ))
        block_count = parse_int(row.get(SCHEDULE_BLOCK_COUNT))
        if block_count is not None and block_count <= 0:
            issues.append(Issue.error(
                name, line, "INVALID_BLOCK_COUNT", "Matchday block count must be positive.",
            ))
    return issues


def _validate_standings(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "standings.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        group_id = parse_int(row.get("stage_line"))
        if group_id is None:
            issues.append(Issue.error(name, line, "INVALID_GROUP", "Group ID must be numeric."))
            continue
        group = index.get(group_id)
        if group is None:
            issues.append(Issue.error(
                name, line, "UNKNOWN_GROUP", f"Group {group_id} does not exist.",
            ))
        elif group.level != GROUP_LEVEL:
            issues.append(Issue.error(
                name, line, "GROUP_NOT_LEVEL5", "Standings must reference level 5 group IDs.",
            ))
    return issues


def _validate_tasks(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "tasks.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        comp_id = parse_int(row.get("target_stage"))
        if comp_id is None:
            issues.append(Issue.error(
                name, line, "INVALID_COMP_ID", "Competition ID must be numeric.",
            ))
        elif comp_id not in index:
            issues.append(Issue.error(
                name, line, "UNKNOWN_COMP_ID",
                f"Competition {comp_id} does not exist in compobj.txt.",
            ))
        for column in TASK_ARGUMENT_COLUMNS:
            arg_id = parse_int(row.get(column))
            if arg_id is not None and arg_id not in index:
                issues.append(Issue.warning(
                    name, line, "UNKNOWN_TASK_TARGET", f"Task references unknown ID {arg_id}.",
                ))
    return issues


def _validate_weather(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "weather.txt"
    issues: list[Issue] = []
    federations = index.level_ids(FEDERATION_LEVEL)
    seen: set[int] = set()
    for line, row in enumerate(rows, start=1):
        fed_id = parse_int(row.get("competition_line"))
        if fed_id is None:
            issues.append(Issue.error(
                name, line, "INVALID_FED_ID", "Federation ID must be numeric.",
            ))
            continue
        seen.add(fed_id)
        if fed_id not in federations:
            issues.append(Issue.error(
                name, line, "UNKNOWN_FED", f"Federation {fed_id} does not exist.",
            ))
    for fed_id in federations:
        if fed_id not in seen:
            issues.append(Issue.warning(
                name, 0, "MISSING_FED_ROW", f"Federation {fed_id} is missing weather entries.",
            ))
    return issues


def _validate_objectives(rows: Sequence[Row], index: IdIndex) -> list[Issue]:
    name = "objectives.txt"
    issues: list[Issue] = []
    for line, row in enumerate(rows, start=1):
        target = parse_int(row.get("competition_line"))
        if target is None:
            issues.append(Issue.error(name, line, "INVALID_TARGET", "Target ID must be numeric."))
        elif target not in index:
            issues.append(Issue.error(
                name, line, "UNKNOWN_TARGET", f"Target {target} does not exist.",
            ))
    return issues


def validate(
    dataset: Mapping[str, Sequence[Row]],
    stage_type_keys: Collection[str] = DEFAULT_STAGE_TYPE_KEYS,
) -> ValidationReport:
    """Validate the full dataset and collect every issue.

    Args:
        dataset: File name -> rows. Missing files count as empty; names
            without a schema are ignored.
        stage_type_keys: Settings rule names that must carry a value

    Returns:
        ValidationReport with ``ok`` False iff any issue is an error
    """
    files = {name: list(dataset.get(name, ())) for name in FILE_SCHEMAS}
    entries = hierarchy_entries(files[HIERARCHY_FILE])
    index = build_id_index(entries)

    issues: list[Issue] = []
    for name, rows in files.items():
        issues.extend(_check_column_counts(name, rows))
    issues.extend(_validate_identity(entries))
    issues.extend(_validate_shape(entries, index))
    issues.extend(_validate_style(entries))
    issues.extend(_validate_settings(files["settings.txt"], index, stage_type_keys))
    issues.extend(_validate_advancement(files["advancement.txt"], index))
    issues.extend(_validate_schedule(files["schedule.txt"], index))
    issues.extend(_validate_standings(files["standings.txt"], index))
    issues.extend(_validate_tasks(files["tasks.txt"], index))
    issues.extend(_validate_weather(files["weather.txt"], index))
    issues.extend(_validate_objectives(files["objectives.txt"], index))
    return ValidationReport(issues=issues)
