"""Tests for the cadence CLI: study commands, card commands, settings and config."""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from cadence.domain.constants import MS_PER_DAY
from cadence.domain.errors import StoreError
from cadence.domain.models import Rating
from cadence.interface.cli import app, parse_rating

runner = CliRunner()


@pytest.fixture
def cli(mock_home, store_path, now):
    """Invoke the app against a temp store with the clock pinned to ``now``."""

    def invoke(*args, at=now, input=None):
        with patch("cadence.interface.cli._now", return_value=at):
            return runner.invoke(
                app, ["--store", str(store_path), "--seed", "1", *args], input=input
            )

    return invoke


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "SM-2 spaced-repetition scheduler" in result.stdout
    for command in ("next", "rate", "undo", "stats", "preview", "add"):
        assert command in result.stdout


# --- Rating parsing ---


@pytest.mark.parametrize(
    "text, rating",
    [("again", Rating.AGAIN), ("Hard", Rating.HARD), ("2", Rating.GOOD), (" EASY ", Rating.EASY)],
)
def test_parse_rating(text, rating):
    assert parse_rating(text) is rating


@pytest.mark.parametrize("text", ["4", "-1", "meh", ""])
def test_parse_rating_rejects(text):
    with pytest.raises(typer.BadParameter):
        parse_rating(text)


# --- Study loop ---


def test_add_and_next(cli):
    result = cli("add", "c1", "c2", "--note", "n1")
    assert result.exit_code == 0
    assert "Added 2 card(s)." in result.stdout

    again = cli("add", "c2", "c3")
    assert "Added 1 card(s)." in again.stdout
    assert "Skipped 1 existing card(s)." in again.stdout

    nxt = cli("next")
    assert nxt.exit_code == 0
    assert nxt.stdout.strip() in {"c1", "c2", "c3"}


def test_next_with_empty_store(cli):
    result = cli("next")
    assert result.exit_code == 0
    assert "Nothing left to study today." in result.stdout


def test_rate_shows_outcome_and_next(cli, store_path):
    cli("add", "c1", "c2")
    result = cli("rate", "c1", "good")
    assert result.exit_code == 0
    assert "c1: learning, next in 1m" in result.stdout
    assert "Next: c2" in result.stdout

    stored = json.loads(store_path.read_text())
    assert stored["cards"]["c1"]["state"] == "learning"
    assert stored["session"]["new_cards_studied"] == 1


def test_rate_accepts_digits(cli):
    cli("add", "c1")
    result = cli("rate", "c1", "3")
    assert result.exit_code == 0
    assert "c1: review, next in 4d" in result.stdout
    assert "Nothing left to study today." in result.stdout


def test_rate_invalid_rating(cli):
    cli("add", "c1")
    result = cli("rate", "c1", "perfect")
    assert result.exit_code == 2


def test_rate_unknown_card(cli):
    result = cli("rate", "ghost", "good")
    assert result.exit_code == 1
    assert "Unknown card: ghost" in result.output


def test_undo(cli):
    cli("add", "c1")
    cli("rate", "c1", "easy")

    result = cli("undo")
    assert result.exit_code == 0
    assert "Restored c1 (new)" in result.stdout

    empty = cli("undo")
    assert "Nothing to undo." in empty.stdout


def test_stats(cli):
    cli("add", "c1", "c2")
    cli("rate", "c1", "again")

    result = cli("stats")
    assert result.exit_code == 0
    assert "Cards: 2" in result.stdout
    assert "Learning: 1" in result.stdout
    assert "Studied today: 1 new, 0 reviews" in result.stdout

    as_json = json.loads(cli("stats", "--json").stdout)
    assert as_json["new_available"] == 1
    assert as_json["lapses"] == 1
    assert as_json["complete"] is False


def test_preview(cli):
    cli("add", "c1")
    result = cli("preview", "c1")
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0].split() == ["Again", "1m"]
    assert lines[-1].split() == ["Easy", "4d"]


def test_suspend_and_unsuspend(cli, now):
    cli("add", "c1")
    assert "Suspended c1" in cli("suspend", "c1").stdout
    assert "Nothing left" in cli("next").stdout
    assert "Unsuspended c1" in cli("unsuspend", "c1").stdout
    assert cli("next").stdout.strip() == "c1"


def test_reset_requires_confirmation(cli):
    cli("add", "c1")
    cli("rate", "c1", "easy")

    aborted = cli("reset", "c1", input="n\n")
    assert aborted.exit_code == 1

    result = cli("reset", "c1", "--force")
    assert result.exit_code == 0
    assert "Reset c1" in result.stdout


def test_daily_reset_between_runs(cli, now):
    cli("add", "c1")
    cli("rate", "c1", "easy")
    assert "Nothing left" in cli("next").stdout
    assert cli("next", at=now + 4 * MS_PER_DAY).stdout.strip() == "c1"


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level = root.level
    root.setLevel(logging.WARNING)
    yield root
    root.setLevel(level)


def test_verbose_enables_debug_logging(cli, root_logger):
    result = cli("-v", "next")
    assert result.exit_code == 0
    assert root_logger.level == logging.DEBUG


def test_default_run_keeps_log_level(cli, root_logger):
    result = cli("next")
    assert result.exit_code == 0
    assert root_logger.level == logging.WARNING


@patch("cadence.interface.cli.StudyService")
def test_store_errors_exit_nonzero(mock_service_cls, cli):
    mock_service = MagicMock()
    mock_service.next_card.side_effect = StoreError("Store deck.json is not valid JSON")
    mock_service_cls.return_value = mock_service

    result = cli("next")

    assert result.exit_code == 1
    assert "Error: Store deck.json is not valid JSON" in result.output


# --- Settings ---


def test_settings_check_ok(mock_home, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("learning_steps: [1, 10, 60]\n")
    result = runner.invoke(app, ["settings", "check", str(path)])
    assert result.exit_code == 0
    assert "Settings OK." in result.stdout
    assert json.loads(result.stdout.split("Settings OK.")[0])["learning_steps"] == [1, 10, 60]


def test_settings_check_reports_repairs(mock_home, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("starting_ease: 9\nfuzz: true\n")
    result = runner.invoke(app, ["settings", "check", str(path)])
    assert result.exit_code == 1
    assert "WARNING: starting_ease 9 above maximum" in result.stdout
    assert "WARNING: Unknown setting 'fuzz' ignored" in result.stdout


def test_settings_file_applies_to_study(cli, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("learning_steps: [3]\n")
    cli("add", "c1")
    with patch("cadence.interface.cli._now", return_value=0):
        args = ["--store", str(tmp_path / "deck.json"), "--settings", str(path), "rate", "c1", "1"]
        result = runner.invoke(app, args)
    assert "c1: learning, next in 3m" in result.stdout


# --- Config ---


def test_config_show(mock_home, tmp_path):
    store = tmp_path / "elsewhere.json"
    args = ["--store", str(store), "--timezone", "Asia/Tokyo", "config", "show"]
    result = runner.invoke(app, args)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["store_path"] == str(store)
    assert data["timezone"] == "Asia/Tokyo"
    assert data["settings_file"] is None
