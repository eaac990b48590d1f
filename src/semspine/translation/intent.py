"""Turn user input into a canonical query.

JSON input is validated as a :class:`CanonicalQuery`. Free text is matched
against a small set of known phrases; anything else is rejected.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from semspine.core.errors import IntentParseError
from semspine.core.models import CanonicalQuery

_PHRASES: dict[str, dict] = {
    "recent opportunities": {
        "object": "Opportunity",
        "select": ["Id", "Name", "StageName", "Amount"],
        "where": [{"field": "CreatedDate", "op": ">", "value": "LAST_N_DAYS:30"}],
        "orderBy": {"field": "CreatedDate", "direction": "DESC"},
        "limit": 20,
    },
}


def parse_intent(text: str) -> CanonicalQuery:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        lowered = text.lower()
        for phrase, query in _PHRASES.items():
            if phrase in lowered:
                return CanonicalQuery.model_validate(query)
        raise IntentParseError("Could not parse input") from None

    try:
        return CanonicalQuery.model_validate(payload)
    except ValidationError as e:
        raise IntentParseError(f"Invalid query payload: {e.error_count()} error(s)", cause=e) from e


__all__ = ["parse_intent"]
