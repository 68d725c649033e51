from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Editor configuration loader.

Responsibilities:
- Load YAML config (default: config/editor.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults (backup=true, log_directory=./logs, stage_type_keys=[match_stagetype])
- Let the LEAGUE_DATA_DIR environment variable override data_directory
"""

__all__ = [
    "ConfigError",
    "EditorConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "DATA_DIR_ENV",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/editor.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DATA_DIR_ENV = "LEAGUE_DATA_DIR"

DEFAULT_LOG_DIRECTORY = "./logs"
DEFAULT_STAGE_TYPE_KEYS = ["match_stagetype"]


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class EditorConfig:
    data_directory: str
    backup: bool
    log_directory: str
    stage_type_keys: tuple[str, ...]

    @property
    def data_path(self) -> Path:
        return Path(self.data_directory)

    @property
    def log_path(self) -> Path:
        return Path(self.log_directory)


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or not JSON, or data violating it
            (missing required keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> EditorConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    # 環境変数 (.env 含む) がファイル設定より優先
    data_directory = os.getenv(DATA_DIR_ENV) or data["data_directory"]
    return EditorConfig(
        data_directory=data_directory,
        backup=data.get("backup", True),
        log_directory=data.get("log_directory", DEFAULT_LOG_DIRECTORY),
        stage_type_keys=tuple(data.get("stage_type_keys", DEFAULT_STAGE_TYPE_KEYS)),
    )
