from __future__ import annotations

from pathlib import Path

import pytest

from league_integrity.config.loader import DATA_DIR_ENV, ConfigError, load_config


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.data_directory == "./data"
    assert cfg.backup is True
    assert cfg.log_path == Path("./logs")
    assert cfg.stage_type_keys == ("match_stagetype",)
    assert cfg.data_path == Path("./data")


def test_load_config_defaults(temp_workdir: Path):
    cfg_path = temp_workdir / "config" / "editor.yml"
    cfg_path.write_text("data_directory: ./other\n", encoding="utf-8")
    cfg = load_config(cfg_path)
    assert cfg.backup is True
    assert cfg.log_directory == "./logs"
    assert cfg.stage_type_keys == ("match_stagetype",)


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError) as e:
        load_config(temp_workdir / "config" / "not_exists.yml")
    assert "not found" in str(e.value)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("data_directory: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("data_directory: ./data\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_wrong_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("backup: true", "backup: sometimes")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_load_config_empty_file(write_config: Path):
    write_config.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_env_overrides_data_directory(write_config: Path, monkeypatch):
    monkeypatch.setenv(DATA_DIR_ENV, "/srv/league")
    cfg = load_config(write_config)
    assert cfg.data_directory == "/srv/league"
