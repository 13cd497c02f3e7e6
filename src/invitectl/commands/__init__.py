"""Subcommand modules for invitectl.

Provides register_commands() which uses deferred imports to keep
``invitectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from invitectl.commands.guild import guild
    from invitectl.commands.invites import invites
    from invitectl.commands.ranks import ranks
    from invitectl.commands.record import record

    cli.add_command(invites)
    cli.add_command(ranks)
    cli.add_command(record)
    cli.add_command(guild)

    # --- Standalone commands ---
    from invitectl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
