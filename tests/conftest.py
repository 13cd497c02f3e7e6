"""Shared pytest fixtures and test helpers for invitectl tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from invitectl.config.models import BotConfig, DatabaseConfig
from invitectl.config.settings import InviteSettings
from invitectl.domain.types import InvalidationReason
from invitectl.infrastructure.database.engine import init_database
from invitectl.infrastructure.tracker import Tracker
from invitectl.services.telemetry import disable_telemetry

GUILD = "g1"
BOT = "bot"


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """``-v`` in a CLI test enables telemetry for the whole thread."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INVITECTL_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "invites.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path) -> InviteSettings:
    return InviteSettings(
        project_root=tmp_path,
        database=DatabaseConfig(path=Path("invites.db")),
        bot=BotConfig(member_id=BOT),
    )


@pytest.fixture
def tracker(settings: InviteSettings) -> Generator[Tracker]:
    """Tracker over a fresh database, with an empty plugin manager."""
    t = Tracker(settings)
    t.init_plugins(discover=False)
    try:
        yield t
    finally:
        t.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project with a config so the CLI uses an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    (tmp_path / "invitectl.toml").write_text(f'[bot]\nmember_id = "{BOT}"\n')
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def seed_member_credit(
    tracker: Tracker,
    member_id: str,
    *,
    uses: int = 0,
    custom: int = 0,
    fakes: int = 0,
    leaves: int = 0,
    name: str | None = None,
    guild_id: str = GUILD,
) -> None:
    """Record a code with *uses*, a custom bonus, and invalidated joins on it."""
    invites = tracker.invites
    if name is not None:
        invites.upsert_member(guild_id, member_id, name=name)
    code = f"code-{member_id}"
    invites.record_invite_code(guild_id, code, member_id, uses=uses)
    if custom:
        invites.add_custom_invite(guild_id, member_id, custom, reason="seed")
    for i in range(fakes):
        invites.record_join(
            guild_id, f"{member_id}-fake-{i}", code=code, invalidated_reason=InvalidationReason.FAKE
        )
    for i in range(leaves):
        invites.record_join(guild_id, f"{member_id}-leave-{i}", code=code)
        invites.invalidate_joins(guild_id, f"{member_id}-leave-{i}", InvalidationReason.LEAVE)


def seed_roles(tracker: Tracker, guild_id: str = GUILD) -> None:
    """Bot role at position 10 with manage-roles; rank roles A (2) and B (5)."""
    roles = tracker.roles
    roles.upsert_role(guild_id, "bot-role", "Bot", position=10, permissions=0x10000000)
    roles.upsert_role(guild_id, "A", "Recruiter", position=2)
    roles.upsert_role(guild_id, "B", "Ambassador", position=5)
    roles.grant_role(guild_id, BOT, "bot-role", "seed")
