"""Click base classes for invitectl commands.

``InviteCommand`` and ``InviteGroup`` accept an ``examples`` string;
passing ``--examples`` prints it and exits, which keeps ``--help`` short.
Commands that take a ``guild_id`` (and optionally a ``member_id``) run
inside :func:`~invitectl.config.logging.guild_scope`, so every log line
they cause names the guild it concerns.
"""

from __future__ import annotations

from typing import Any

import click

from invitectl.config.logging import guild_scope

SCOPE_PARAMS = ("guild_id", "member_id")


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


def log_scope(params: dict[str, Any]) -> dict[str, str]:
    """Pick the guild/member ids out of parsed command parameters."""
    return {k: str(params[k]) for k in SCOPE_PARAMS if params.get(k) is not None}


class InviteCommand(click.Command):
    """Click Command with ``--examples`` and guild-scoped logging."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)

    def invoke(self, ctx: click.Context) -> Any:
        scope = log_scope(ctx.params)
        if "guild_id" not in scope:
            return super().invoke(ctx)
        with guild_scope(scope["guild_id"], scope.get("member_id")):
            return super().invoke(ctx)


class InviteGroup(click.Group):
    """Click Group whose subcommands default to :class:`InviteCommand`."""

    command_class = InviteCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
