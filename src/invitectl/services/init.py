"""InitService — set up a project directory for invitectl.

Writes a sparse ``invitectl.toml`` (only the values given on the command
line) and creates the SQLite store. Existing config is never overwritten.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment

from invitectl.config.discovery import CONFIG_FILENAME
from invitectl.config.models import DEFAULT_DB_PATH
from invitectl.infrastructure.database.engine import init_database
from invitectl.infrastructure.errors import StoreError
from invitectl.services.result import ServiceResult

_CONFIG_TEMPLATE = """\
# invitectl configuration. Values omitted here use built-in defaults.

[database]
path = "{{ db_path }}"
{% if member_id %}
[bot]
member_id = "{{ member_id }}"
{% endif %}
{%- if style %}
[ranks]
default_assignment_style = "{{ style }}"
{% endif %}
"""


class InitService:
    """Project initialization. Runs before any Tracker exists."""

    @staticmethod
    def init_project(
        root: Path,
        *,
        bot_member_id: str | None = None,
        assignment_style: str | None = None,
        db_path: Path = DEFAULT_DB_PATH,
    ) -> ServiceResult:
        op = "init_project"
        config_file = root / CONFIG_FILENAME
        if config_file.exists():
            return ServiceResult.failure(
                op,
                "ALREADY_INITIALIZED",
                f"{config_file} already exists",
                path=str(config_file),
            )

        root.mkdir(parents=True, exist_ok=True)
        content = (
            Environment(keep_trailing_newline=True)
            .from_string(_CONFIG_TEMPLATE)
            .render(db_path=db_path.as_posix(), member_id=bot_member_id, style=assignment_style)
        )
        config_file.write_text(content, encoding="utf-8")

        resolved_db = db_path if db_path.is_absolute() else root / db_path
        try:
            engine = init_database(resolved_db)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        engine.dispose()

        warnings: list[str] = []
        if bot_member_id is None:
            warnings.append("No bot member id set; every positioned role counts as too high")
        return ServiceResult(
            ok=True,
            op=op,
            data={"config_path": str(config_file), "db_path": str(resolved_db)},
            warnings=warnings,
        )
