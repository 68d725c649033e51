from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, EditorConfig, load_config
from ..datafiles.reader import DataFileError, read_dataset
from ..datafiles.writer import write_archive, write_dataset
from ..logging.init import log_summary, set_level, setup_logging
from ..logging.issue_log import IssueLogBuffer
from ..models.issue import ValidationReport
from ..models.results import ReferenceStats
from ..models.schema import FILE_ORDER, FILE_SCHEMAS
from ..services.autofix import apply_autofix
from ..services.report import issue_counts, write_issue_report
from ..services.summary import render_summary_line
from ..services.workspace import Workspace

"""CLI entrypoint.

Commands operate on the data directory named in the config file:

- validate  run every rule, log issues, optional CSV report
- renumber  recalculate line ids / references and save
- autofix   apply automatic fixes, recalculate and save
- inspect   print columns and the first rows of each file
- export    package the eight files into a zip archive

Each command ends with one SUMMARY line.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_VALIDATION_ERRORS = 2

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env via python-dotenv; .env values take precedence over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="league-integrity",
        description="Competition data files: renumbering, reference rewrite and validation",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to editor.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate all data files")
    v.add_argument("--report", type=Path, default=None, help="Write issues as CSV to this path")

    sub.add_parser("renumber", help="Renumber compobj.txt and rewrite references, then save")
    sub.add_parser("autofix", help="Apply automatic fixes, then save")
    sub.add_parser("inspect", help="Print columns and sample rows of each file")

    e = sub.add_parser("export", help="Write a zip archive of the data files")
    e.add_argument("--output", type=Path, required=True, help="Target .zip path")
    return p.parse_args(argv)


def _open_workspace(cfg: EditorConfig) -> Workspace:
    dataset = read_dataset(cfg.data_path)
    return Workspace(dataset, stage_type_keys=cfg.stage_type_keys)


def _log_issues(logger: logging.Logger, report: ValidationReport) -> None:
    for issue in report.issues:
        if issue.is_error:
            logger.error(issue.describe())
        else:
            logger.warning(issue.describe())


def _summarize(
    workspace: Workspace,
    report: ValidationReport | None = None,
    references: ReferenceStats | None = None,
) -> None:
    line = render_summary_line(len(FILE_ORDER), workspace.total_rows(), report, references)
    # log_summary が "SUMMARY " ラベルを付与するため先頭を除去
    log_summary(line[len("SUMMARY "):])


def _cmd_validate(cfg: EditorConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    workspace = _open_workspace(cfg)
    report = workspace.validate()
    _log_issues(logger, report)

    issue_log = IssueLogBuffer(cfg.log_path)
    issue_log.extend(report.issues)
    log_file = issue_log.flush()
    if log_file is not None:
        logger.info(f"issue log: {log_file}")

    if report.issues:
        counts = issue_counts(report)
        for file_name, row in counts.iterrows():
            logger.info(f"{file_name}: errors={row['error']} warnings={row['warning']}")
    if args.report is not None:
        written = write_issue_report(report, args.report)
        logger.info(f"report written: {written}")

    _summarize(workspace, report, workspace.last_references)
    return EXIT_SUCCESS if report.ok else EXIT_VALIDATION_ERRORS


def _save(cfg: EditorConfig, workspace: Workspace, logger: logging.Logger) -> None:
    saved = write_dataset(cfg.data_path, workspace.snapshot(), backup=cfg.backup)
    workspace.mark_saved()
    for entry in saved:
        logger.debug(f"saved {entry.name} bytes={entry.bytes} backup={entry.backup}")
    logger.info(f"saved {len(saved)} file(s) to {cfg.data_path}")


def _cmd_renumber(cfg: EditorConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    workspace = _open_workspace(cfg)
    references = workspace.last_references
    logger.info(f"references updated={references.updated} broken={references.broken}")
    _save(cfg, workspace, logger)
    _summarize(workspace, None, references)
    return EXIT_SUCCESS


def _cmd_autofix(cfg: EditorConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    workspace = _open_workspace(cfg)
    result = apply_autofix(workspace)
    logger.info(f"autofix renamed_stages={result.renamed_stages} blanked_cells={result.blanked_cells}")
    _save(cfg, workspace, logger)
    _summarize(workspace, None, result.references)
    return EXIT_SUCCESS


def _cmd_inspect(cfg: EditorConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    workspace = _open_workspace(cfg)
    for name in FILE_ORDER:
        schema = FILE_SCHEMAS[name]
        rows = workspace.rows(name)
        print(f"FILE: {name} rows={len(rows)} cols={schema.column_keys}")
        for row in rows[:INSPECT_SAMPLE_ROWS]:
            print("    ", row.cells(schema))
    _summarize(workspace)
    return EXIT_SUCCESS


def _cmd_export(cfg: EditorConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    workspace = _open_workspace(cfg)
    report = workspace.validate()
    if not report.ok:
        _log_issues(logger, report)
        logger.error("export aborted: dataset has validation errors")
        _summarize(workspace, report, workspace.last_references)
        return EXIT_VALIDATION_ERRORS
    archive = write_archive(args.output, workspace.snapshot())
    logger.info(f"archive written: {archive}")
    _summarize(workspace, report, workspace.last_references)
    return EXIT_SUCCESS


COMMANDS = {
    "validate": _cmd_validate,
    "renumber": _cmd_renumber,
    "autofix": _cmd_autofix,
    "inspect": _cmd_inspect,
    "export": _cmd_export,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: [] を渡された場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not cfg.data_path.is_dir():
        logger.error(f"directory not found: {cfg.data_path}")
        return EXIT_FATAL

    logger.info(f"Processing files from: {cfg.data_path}")
    try:
        return COMMANDS[args.command](cfg, args, logger)
    except DataFileError as e:
        logger.error(f"data: {e}")
        return EXIT_FATAL
