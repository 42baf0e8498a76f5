from pathlib import Path

import pytest
from pydantic import ValidationError

from mneme.application.config import AppConfig, SchedulerSettings, resolve_config


def test_scheduler_defaults():
    settings = SchedulerSettings()
    assert settings.request_retention == 0.9
    assert settings.maximum_interval == 365
    assert settings.learning_steps == [1.0, 10.0]
    assert settings.relearning_steps == [10.0]
    assert settings.enable_fuzz is True
    assert len(settings.weights) == 19


@pytest.mark.parametrize("retention", [0.0, 1.0, 1.5, -0.1])
def test_retention_must_be_open_interval(retention):
    with pytest.raises(ValidationError):
        SchedulerSettings(request_retention=retention)


def test_invalid_scheduler_values():
    with pytest.raises(ValidationError):
        SchedulerSettings(maximum_interval=0)
    with pytest.raises(ValidationError):
        SchedulerSettings(learning_steps=[1.0, -5.0])
    with pytest.raises(ValidationError):
        SchedulerSettings(weights=[1.0, 2.0])


def test_empty_steps_allowed():
    assert SchedulerSettings(relearning_steps=[]).relearning_steps == []


def test_resolve_defaults(mock_home, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = resolve_config()

    assert config.vault_root == tmp_path.resolve()
    assert config.store_path == tmp_path.resolve() / ".mneme" / "cards.yaml"
    assert config.verbose == 1


def test_overrides_win_and_none_ignored(mock_home, mock_vault):
    config = resolve_config({"vault_root": mock_vault, "verbose": None})
    assert config.vault_root == mock_vault.resolve()
    assert config.verbose == 1


def test_env_overrides(mock_home, mock_vault, monkeypatch):
    monkeypatch.setenv("MNEME_VAULT_ROOT", str(mock_vault))
    monkeypatch.setenv("MNEME_SCHEDULER__MAXIMUM_INTERVAL", "90")

    config = AppConfig()

    assert config.vault_root == mock_vault.resolve()
    assert config.scheduler.maximum_interval == 90


def test_toml_config_file(mock_home, mock_vault):
    cfg_dir = mock_home / ".config" / "mneme"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text(
        f'vault_root = "{mock_vault.as_posix()}"\n'
        "verbose = 2\n"
        "\n"
        "[scheduler]\n"
        "request_retention = 0.85\n"
        "enable_fuzz = false\n"
    )

    config = resolve_config()

    assert config.vault_root == mock_vault.resolve()
    assert config.verbose == 2
    assert config.scheduler.request_retention == 0.85
    assert config.scheduler.enable_fuzz is False


def test_cli_beats_file(mock_home, tmp_path):
    (mock_home / ".mneme.toml").write_text("verbose = 3\n")
    config = resolve_config({"verbose": 0, "vault_root": tmp_path})
    assert config.verbose == 0


def test_path_expansion(mock_home):
    config = AppConfig(store_path="~/cards.yaml")
    assert config.store_path == Path(mock_home / "cards.yaml").resolve()
