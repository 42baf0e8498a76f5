"""Tests for CLI commands: help, generate, due, dashboard, practice and config."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from mneme.interface.cli import app

runner = CliRunner()


@pytest.fixture
def notes(mock_home, mock_vault):
    (mock_vault / "capitals.md").write_text(
        "# Capitals\n- France :: Paris\n- Japan :: Tokyo\n"
    )
    return mock_vault


def _generate(path):
    result = runner.invoke(app, ["generate", str(path)])
    assert result.exit_code == 0, result.output
    return result


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition" in result.stdout
    assert "practice" in result.stdout
    assert "generate" in result.stdout


# --- Generate ---


def test_generate_creates_cards(notes):
    result = _generate(notes)

    assert "Found 2 flashcards: 2 new, 0 already tracked." in result.stdout
    data = yaml.safe_load((notes / ".mneme" / "cards.yaml").read_text())
    assert len(data) == 2
    assert all(record["state"] == "New" for record in data.values())


def test_generate_twice_keeps_existing(notes):
    _generate(notes)
    result = _generate(notes)
    assert "0 new, 2 already tracked" in result.stdout


# --- Due ---


def test_due_json(notes):
    _generate(notes)
    result = runner.invoke(app, ["due", str(notes), "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert [r["question"] for r in rows] == ["France", "Japan"]
    assert rows[0]["source"] == "capitals.md:2"
    assert rows[0]["state"] == "New"


def test_due_nothing_tracked(notes):
    result = runner.invoke(app, ["due", str(notes)])
    assert result.exit_code == 0
    assert "No flashcards due." in result.stdout


def test_due_file_filter(notes):
    (notes / "other.md").write_text("x :: y\n")
    _generate(notes)
    result = runner.invoke(app, ["due", str(notes), "-f", "other.md", "--json"])

    rows = json.loads(result.stdout)
    assert [r["question"] for r in rows] == ["x"]


# --- Practice ---


def test_practice_session(notes):
    _generate(notes)
    result = runner.invoke(app, ["practice", str(notes)], input="\n3\n\n1\n")

    assert result.exit_code == 0, result.output
    assert "France" in result.stdout
    assert "-> Paris" in result.stdout
    assert "Session complete: 2 reviewed" in result.stdout
    assert "Again: 1  Hard: 0  Good: 1  Easy: 0" in result.stdout

    data = yaml.safe_load((notes / ".mneme" / "cards.yaml").read_text())
    assert {record["state"] for record in data.values()} == {"Learning"}
    assert all(record["reps"] == 1 for record in data.values())


def test_practice_rejects_bad_rating(notes):
    _generate(notes)
    result = runner.invoke(app, ["practice", str(notes)], input="\n9\n4\n\n4\n")

    assert result.exit_code == 0, result.output
    assert "Please enter 1, 2, 3 or 4." in result.stdout
    assert "Easy: 2" in result.stdout


def test_practice_nothing_due(notes):
    result = runner.invoke(app, ["practice", str(notes)])
    assert result.exit_code == 0
    assert "All caught up! No flashcards due." in result.stdout


def test_practice_quit_keeps_ratings(notes):
    _generate(notes)
    result = runner.invoke(app, ["practice", str(notes)], input="\n3\nq\n")

    assert result.exit_code == 0
    assert "Session cancelled." in result.stdout
    data = yaml.safe_load((notes / ".mneme" / "cards.yaml").read_text())
    assert sorted(record["state"] for record in data.values()) == ["Learning", "New"]


def test_practice_quit_reports_failed_saves(notes):
    _generate(notes)
    with patch(
        "mneme.interface.cli.YamlCardStore.save", new=AsyncMock(return_value=False)
    ):
        result = runner.invoke(app, ["practice", str(notes)], input="\n3\nq\n")

    assert result.exit_code == 1
    assert "Session cancelled." in result.stdout
    assert "1 ratings could not be saved:" in result.stdout
    assert "capitals.md#" in result.stdout


# --- Dashboard ---


def test_dashboard_json(notes):
    _generate(notes)
    result = runner.invoke(app, ["dashboard", str(notes), "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert len(rows) == 2
    assert all(r["is_due"] for r in rows)
    assert all(r["retrievability"] == 0.0 for r in rows)
    assert rows[0]["last_review"] is None


def test_dashboard_text(notes):
    _generate(notes)
    result = runner.invoke(app, ["dashboard", str(notes)])

    assert result.exit_code == 0
    assert "Cards: 2  Due now: 2" in result.stdout
    assert "last=never" in result.stdout


def test_dashboard_empty(notes):
    result = runner.invoke(app, ["dashboard", str(notes)])
    assert "mneme generate" in result.stdout


# --- Config ---


@patch("mneme.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {"vault_root": "/tmp/vault", "verbose": 1}
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["vault_root"] == "/tmp/vault"


def test_config_show_real(mock_home, mock_vault, monkeypatch):
    monkeypatch.setenv("MNEME_VAULT_ROOT", str(mock_vault))
    result = runner.invoke(app, ["config", "show"])

    data = json.loads(result.stdout)
    assert data["vault_root"] == str(mock_vault.resolve())
    assert data["scheduler"]["request_retention"] == 0.9


# --- Verbosity ---


def test_single_verbose_flag_enables_info(notes):
    runner.invoke(app, ["due", str(notes)])
    assert logging.getLogger("mneme").level == logging.WARNING

    runner.invoke(app, ["-v", "due", str(notes)])
    assert logging.getLogger("mneme").level == logging.INFO

    runner.invoke(app, ["-vv", "due", str(notes)])
    assert logging.getLogger("mneme").level == logging.DEBUG


def test_configured_verbosity_applies_without_flags(notes, monkeypatch):
    monkeypatch.setenv("MNEME_VERBOSE", "2")
    runner.invoke(app, ["due", str(notes)])
    assert logging.getLogger("mneme").level == logging.INFO
