"""Tests for the ``record`` command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from invitectl.cli import cli
from tests.conftest import GUILD


@pytest.mark.usefixtures("_isolated_root")
class TestRecord:
    def test_member(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "record", "member", GUILD, "m1", "--name", "alice"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["name"] == "alice"

    def test_role_and_grant(self, cli_runner: CliRunner) -> None:
        assert cli_runner.invoke(
            cli, ["record", "role", GUILD, "r1", "Member", "--position", "1"]
        ).exit_code == 0
        result = cli_runner.invoke(cli, ["record", "grant", GUILD, "m1", "r1"])
        assert result.exit_code == 0
        assert "assign_role" in result.stdout

    def test_grant_unknown_role(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["record", "grant", GUILD, "m1", "r9"])
        assert result.exit_code == 1

    def test_negative_uses(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["record", "code", GUILD, "abc", "--uses", "-1"])
        assert result.exit_code == 1

    def test_join_and_invalidate(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["record", "code", GUILD, "abc", "--inviter", "m1", "--uses", "2"])
        joined = cli_runner.invoke(cli, ["record", "join", GUILD, "j1", "--code", "abc"])
        assert joined.exit_code == 0
        result = cli_runner.invoke(
            cli, ["--json", "record", "invalidate", GUILD, "j1", "--reason", "leave"]
        )
        assert json.loads(result.stdout)["data"]["count"] == 1
        show = cli_runner.invoke(cli, ["--json", "invites", "show", GUILD, "m1"])
        assert json.loads(show.stdout)["data"]["leave"] == -1

    def test_invalidate_requires_reason(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["record", "invalidate", GUILD, "j1"])
        assert result.exit_code == 2

    def test_bad_reason_choice(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["record", "join", GUILD, "j1", "--invalidated", "banned"]
        )
        assert result.exit_code == 2
