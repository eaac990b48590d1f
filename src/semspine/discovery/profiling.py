"""Field profiling over sampled rows, to help analysts map weakly typed APIs."""

from __future__ import annotations

import re
from typing import Any

from semspine.core.models import FieldProfile, TopValue

MAX_TOP_VALUES = 10

_ID_PATTERN = re.compile(r"^[0-9A-Za-z]{15,}$")
_COUNTRY_PATTERN = re.compile(r"^[A-Za-z]{2}$")
_CURRENCY_PATTERN = re.compile(r"^\$?\d")
_EMAIL_PATTERN = re.compile(r"^\S+@\S+$")


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def profile_fields(rows: list[dict[str, Any]]) -> list[FieldProfile]:
    """
    Profile every column of the first row.

    Values are compared as text, so ``1`` and ``"1"`` count as the same
    distinct value. Top values keep first-seen order.
    """
    if not rows:
        return []

    profiles = []
    for name in rows[0]:
        non_null = [row.get(name) for row in rows if row.get(name) is not None]
        counts: dict[str, int] = {}
        for value in non_null:
            text = _as_text(value)
            counts[text] = counts.get(text, 0) + 1

        profiles.append(
            FieldProfile(
                name=name,
                null_ratio=1 - len(non_null) / len(rows),
                distinct_count=len(counts),
                top_values=[
                    TopValue(value=value, count=count)
                    for value, count in list(counts.items())[:MAX_TOP_VALUES]
                ],
                type_guess=guess_semantic_type(non_null),
            )
        )
    return profiles


def guess_semantic_type(values: list[Any]) -> str:
    text = _as_text(values[0]) if values else ""
    if _ID_PATTERN.match(text):
        return "id"
    if _COUNTRY_PATTERN.match(text):
        return "country"
    if _CURRENCY_PATTERN.match(text):
        return "currency"
    if _EMAIL_PATTERN.match(text):
        return "email"
    return "enum"


__all__ = ["profile_fields", "guess_semantic_type"]
