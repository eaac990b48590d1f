"""Tests for intent parsing."""

import pytest

from semspine.core.errors import IntentParseError
from semspine.core.models import SortDirection
from semspine.translation.intent import parse_intent


class TestParseIntent:
    def test_json_query(self):
        query = parse_intent('{"object": "customer", "select": ["id"], "limit": 5}')
        assert query.object == "customer"
        assert query.select == ["id"]
        assert query.limit == 5

    def test_invalid_json_query(self):
        with pytest.raises(IntentParseError):
            parse_intent('{"select": ["id"]}')

    def test_json_scalar_rejected(self):
        with pytest.raises(IntentParseError):
            parse_intent("42")

    def test_known_phrase(self):
        query = parse_intent("Show me Recent Opportunities please")
        assert query.object == "Opportunity"
        assert query.order_by.direction == SortDirection.DESC
        assert query.where[0].value == "LAST_N_DAYS:30"
        assert query.limit == 20

    def test_unknown_text(self):
        with pytest.raises(IntentParseError, match="Could not parse input"):
            parse_intent("what is the meaning of life")
