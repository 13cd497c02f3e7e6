"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. The Tracker is built lazily so ``--help`` and
``--examples`` never open the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from invitectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from invitectl.config.settings import InviteSettings
    from invitectl.infrastructure.tracker import Tracker
    from invitectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: InviteSettings) -> None:
        self.settings = settings
        self._tracker: Tracker | None = None

        from invitectl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose, log_json=settings.log_json, quiet=settings.quiet
        )

        if settings.verbose:
            from invitectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def tracker(self) -> Tracker:
        """The Tracker (created on first access, with plugins loaded)."""
        if self._tracker is None:
            from invitectl.infrastructure.tracker import Tracker

            self._tracker = Tracker(self.settings)
            self._tracker.init_plugins()
        return self._tracker

    def close(self) -> None:
        if self._tracker is not None:
            self._tracker.close()
            self._tracker = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
