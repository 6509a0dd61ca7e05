"""Tests for the ``speckit workspaces`` commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from speckit.cli import main


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr("speckit.orchestrator.log.setup_logging", lambda level, **kwargs: None)


@pytest.fixture
def cli() -> CliRunner:
    return CliRunner()


def test_create_and_list(cli: CliRunner) -> None:
    result = cli.invoke(main, ["workspaces", "create", "acme", "widgets", "auth", "--title", "Auth"])
    assert result.exit_code == 0, result.output
    assert "Created acme/widgets/auth." in result.output

    result = cli.invoke(main, ["workspaces", "list"])
    assert result.exit_code == 0, result.output
    assert "acme/widgets/auth" in result.output
    assert "Auth" in result.output


def test_create_duplicate(cli: CliRunner) -> None:
    cli.invoke(main, ["workspaces", "create", "acme", "widgets", "auth"])
    result = cli.invoke(main, ["workspaces", "create", "acme", "widgets", "auth"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_archive_hides_from_default_list(cli: CliRunner) -> None:
    cli.invoke(main, ["workspaces", "create", "acme", "widgets", "auth"])

    result = cli.invoke(main, ["workspaces", "archive", "acme/widgets/auth"])
    assert result.exit_code == 0, result.output
    assert "archived" in result.output

    assert "acme/widgets/auth" not in cli.invoke(main, ["workspaces", "list"]).output
    listed = cli.invoke(main, ["workspaces", "list", "--all"]).output
    assert "acme/widgets/auth (archived)" in listed

    result = cli.invoke(main, ["workspaces", "archive", "acme/widgets/auth", "--restore"])
    assert "restored" in result.output
    assert "acme/widgets/auth" in cli.invoke(main, ["workspaces", "list"]).output


def test_archive_errors(cli: CliRunner) -> None:
    result = cli.invoke(main, ["workspaces", "archive", "acme/widgets/auth"])
    assert result.exit_code == 1
    assert "not found" in result.output

    result = cli.invoke(main, ["workspaces", "archive", "not-an-id"])
    assert result.exit_code == 1
