"""Tests for output mode selection."""

from __future__ import annotations

import json

from invitectl.output.formatters import OutputSettings, format_result
from invitectl.services.result import ServiceResult

RESULT = ServiceResult(
    ok=True,
    op="get_counts",
    data={
        "guild_id": "g1",
        "member_id": "m1",
        "regular": 1,
        "custom": 0,
        "fake": 0,
        "leave": 0,
        "total": 1,
    },
    warnings=["heads up"],
)


class TestFormatResult:
    def test_default_is_human(self) -> None:
        assert format_result(RESULT).startswith("OK  get_counts")

    def test_json(self) -> None:
        payload = json.loads(format_result(RESULT, settings=OutputSettings(json_output=True)))
        assert payload["ok"] is True
        assert payload["data"]["total"] == 1
        assert payload["warnings"] == ["heads up"]

    def test_json_beats_quiet(self) -> None:
        out = format_result(RESULT, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(out)["op"] == "get_counts"

    def test_quiet(self) -> None:
        assert format_result(RESULT, settings=OutputSettings(quiet=True)) == "1"
