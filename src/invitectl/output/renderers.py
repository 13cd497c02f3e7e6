"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from invitectl.output.console import create_console, get_output, style_for_amount

if TYPE_CHECKING:
    from rich.console import Console

    from invitectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "get_counts":
        return str(result.data.get("total", 0))
    if result.op == "leaderboard":
        return "\n".join(str(e["member_id"]) for e in result.data.get("entries", []))
    if result.op == "list_ranks":
        return "\n".join(str(r["role_id"]) for r in result.data.get("ranks", []))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "inv.ok"), (f"  {result.op}", "inv.op")))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = (f"  {key}: ", "inv.key")
    if isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    elif key == "id" or key.endswith("_id"):
        v = Text(str(value), style="inv.id")
    elif key == "total":
        v = Text(str(value), style="inv.total")
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _amount(value: int) -> Text:
    return Text(str(value), style=style_for_amount(value))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    style = "yellow" if duration > 100 else "dim"
    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span_data.get('name', '?')}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text.assemble(("ERROR", "inv.error"), (f"  {result.op}", "inv.op"), f" — {msg}")
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Invite renderers ──────────────────────────────────────────────────


def _render_counts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "member_id", d["member_id"])
    table = Table(show_header=True, pad_edge=False, expand=False)
    for col in ("Regular", "Custom", "Fake", "Leave", "Total"):
        table.add_column(col, justify="right")
    table.add_row(
        _amount(d["regular"]),
        _amount(d["custom"]),
        _amount(d["fake"]),
        _amount(d["leave"]),
        Text(str(d["total"]), style="inv.total"),
    )
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_leaderboard(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    entries = result.data.get("entries", [])
    if not entries:
        console.print("No members with invites yet.")
        return

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Member", style="inv.name")
    table.add_column("Total", justify="right", style="inv.total")
    table.add_column("Regular", justify="right")
    table.add_column("Custom", justify="right")
    table.add_column("Fake", justify="right")
    table.add_column("Leave", justify="right")
    if verbose:
        table.add_column("ID", style="inv.id")

    for e in entries:
        row: list[Text | str] = [
            str(e["position"]),
            e["display_name"],
            str(e["total"]),
            _amount(e["regular"]),
            _amount(e["custom"]),
            _amount(e["fakes"]),
            _amount(e["leaves"]),
        ]
        if verbose:
            row.append(e["member_id"])
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(entries))} members")


def _render_clear(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "scope", d["member_id"] or f"guild {d['guild_id']}")
    for key in ("invite_codes", "joins", "custom_invites"):
        _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


# ── Rank renderers ────────────────────────────────────────────────────


def _render_ranks(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    ranks = result.data.get("ranks", [])
    if not ranks:
        console.print("No ranks configured.")
        return

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Invites", justify="right", style="inv.total")
    table.add_column("Role", style="inv.name")
    table.add_column("Role ID", style="inv.id")
    table.add_column("Description")
    for r in ranks:
        name = r["role_name"] or Text("(deleted role)", style="inv.error")
        table.add_row(str(r["num_invites_required"]), name, r["role_id"], r["description"] or "")
    console.print(table)


def _render_promotion(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "member_id", d["member_id"])
    _field(console, "total_invites", d["total_invites"])
    if not d["num_ranks"]:
        console.print("  No ranks configured.")
        return

    if d["highest_role_id"]:
        _field(console, "highest_role_id", d["highest_role_id"])
    next_rank = d.get("next_rank")
    if next_rank:
        missing = next_rank["num_invites_required"] - d["total_invites"]
        console.print(
            f"  next: {next_rank['role_name']} at {next_rank['num_invites_required']} "
            f"({missing} more)"
        )

    for key, label in (
        ("roles_to_grant", "grant"),
        ("roles_to_revoke", "revoke"),
        ("roles_blocked_by_hierarchy", "blocked"),
        ("revocations_blocked_by_hierarchy", "revoke blocked"),
        ("dangerous_roles", "dangerous"),
        ("skipped_rank_roles", "missing"),
    ):
        if d.get(key):
            _field(console, label, ", ".join(d[key]))

    for m in d.get("mutations", []):
        mark = Text("ok", style="inv.ok") if m["ok"] else Text("failed", style="inv.error")
        console.print(Text.assemble(f"  {m['action']} {m['role_id']}: ", mark))
    if d.get("announced"):
        console.print("  announcement sent")
    if d.get("dry_run"):
        console.print(Text("  dry run: no roles changed", style="inv.blocked"))
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "get_counts": _render_counts,
    "leaderboard": _render_leaderboard,
    "clear_invites": _render_clear,
    "restore_invites": _render_clear,
    "list_ranks": _render_ranks,
    "promote_if_qualified": _render_promotion,
}
