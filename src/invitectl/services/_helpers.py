"""Shared service-layer helper functions."""

from __future__ import annotations


def mention_member(member_id: str) -> str:
    return f"<@{member_id}>"


def mention_role(role_id: str) -> str:
    return f"<@&{role_id}>"
