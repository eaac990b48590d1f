"""Tests for the Ok/Err result envelope."""

import pytest

from semspine.core.errors import MissingFieldMappingError
from semspine.core.result import Err, Ok, partition_results


class TestOk:
    def test_frozen(self):
        with pytest.raises(AttributeError):
            Ok(1).value = 2

    def test_to_dict(self):
        assert Ok(3).to_dict() == {"ok": True, "value": 3}


class TestErr:
    def test_to_dict_uses_semspine_error_dict(self):
        payload = Err(MissingFieldMappingError("region", "Account")).to_dict()
        assert payload["ok"] is False
        assert payload["error"]["error_type"] == "MissingFieldMappingError"
        assert payload["error"]["field"] == "region"

    def test_to_dict_plain_exception(self):
        payload = Err(KeyError("k")).to_dict()
        assert payload["error"]["error_type"] == "KeyError"


class TestPartition:
    def test_partition_keeps_order(self):
        e = ValueError("x")
        values, errors = partition_results([Ok(1), Err(e), Ok(2)])
        assert values == [1, 2]
        assert errors == [e]

    def test_pattern_matching(self):
        match Err(ValueError("boom")):
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert str(error) == "boom"
