"""ChannelMessenger — render and deliver rank announcements.

Announcement templates are guild-provided text with ``{placeholder}``
variables (``{memberMention}``, ``{rankName}``, ...). They are rendered in
a sandboxed Jinja2 environment using single-brace delimiters; unknown
placeholders are left in the output untouched. Block and comment tags are
moved to sequences guild text does not use, and a template that still
fails to parse (``{}``, ``{#general}``) gets plain ``{name}``
substitution with every other brace kept literally. Delivered messages
are appended to the ``announcements`` outbox table.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateSyntaxError, Undefined
from jinja2.sandbox import SandboxedEnvironment
from sqlalchemy import insert, select

from invitectl.infrastructure.database.schema import announcements, now_iso
from invitectl.infrastructure.errors import store_errors
from invitectl.infrastructure.repositories.guild import ChannelRepository

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class _KeepUndefined(Undefined):
    """Render unknown placeholders back as ``{name}``."""

    def __str__(self) -> str:
        return f"{{{self._undefined_name}}}"


def build_template_environment() -> SandboxedEnvironment:
    """Build the single-brace sandboxed environment used for announcements."""
    return SandboxedEnvironment(
        variable_start_string="{",
        variable_end_string="}",
        block_start_string="<%%",
        block_end_string="%%>",
        comment_start_string="<##",
        comment_end_string="##>",
        undefined=_KeepUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


def substitute_placeholders(template: str, variables: Mapping[str, Any]) -> str:
    """Fill known ``{name}`` placeholders; leave all other text as written."""

    def fill(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    return _PLACEHOLDER.sub(fill, template)


class ChannelMessenger:
    """Messenger backed by the local channel snapshot and outbox table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._channels = ChannelRepository(engine)
        self._env = build_template_environment()

    def channel_exists(self, guild_id: str, channel_id: str) -> bool:
        return self._channels.channel_exists(guild_id, channel_id)

    def render(self, guild_id: str, template: str, variables: Mapping[str, Any]) -> str:
        try:
            compiled = self._env.from_string(template)
        except TemplateSyntaxError:
            return substitute_placeholders(template, variables)
        return compiled.render(**variables)

    def send(self, guild_id: str, channel_id: str, content: str) -> None:
        with store_errors("send_announcement"), self._engine.begin() as conn:
            conn.execute(
                insert(announcements).values(
                    guild_id=guild_id,
                    channel_id=channel_id,
                    content=content,
                    created=now_iso(),
                )
            )

    def sent(self, guild_id: str) -> list[dict[str, Any]]:
        """Return delivered announcements for a guild, oldest first."""
        stmt = (
            select(announcements)
            .where(announcements.c.guild_id == guild_id)
            .order_by(announcements.c.id)
        )
        with store_errors("list_announcements"), self._engine.connect() as conn:
            return [dict(r) for r in conn.execute(stmt).mappings()]
