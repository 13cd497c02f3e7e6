"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, invitectl.toml only contains
overrides. A fresh project needs only ``[bot] member_id``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from invitectl.domain.types import AssignmentStyle

DEFAULT_DB_PATH = Path(".invitectl") / "invitectl.db"

DEFAULT_ANNOUNCEMENT = (
    "{memberMention} reached the rank **{rankName}** with {totalInvites} invites!"
)


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    path: Path = DEFAULT_DB_PATH


class BotConfig(BaseModel):
    """[bot] section."""

    model_config = {"frozen": True}

    member_id: str | None = None


class RanksConfig(BaseModel):
    """[ranks] section — defaults for guilds without their own settings."""

    model_config = {"frozen": True}

    default_assignment_style: AssignmentStyle = AssignmentStyle.ALL
    announcement_message: str = DEFAULT_ANNOUNCEMENT


class WorkersConfig(BaseModel):
    """[workers] section."""

    model_config = {"frozen": True}

    query_threads: int = Field(default=3, ge=1)

