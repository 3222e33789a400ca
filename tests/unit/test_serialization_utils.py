"""
Unit tests for shared/serialization_utils.py.
"""

from __future__ import annotations

import json
from decimal import Decimal

from hexbytes import HexBytes

from shared.serialization_utils import DecimalEncoder, dumps
from shared.types import RequestStatus


class TestDecimalEncoder:
    def test_decimal_as_string(self):
        assert json.loads(dumps({"amount": Decimal("2495.123")})) == {"amount": "2495.123"}

    def test_uint256_amounts_stringified(self):
        payload = {"destTokenAmount": 2**200, "estimatedGas": 180_000}
        assert json.loads(dumps(payload)) == {"destTokenAmount": str(2**200), "estimatedGas": 180_000}

    def test_hexbytes_and_bytes(self):
        encoded = json.loads(dumps([HexBytes("0xdeadbeef"), b"\x01\x02"]))
        assert encoded == ["0xdeadbeef", "0x0102"]

    def test_enum_value(self):
        assert json.dumps(RequestStatus.FETCHED, cls=DecimalEncoder) == '"fetched"'

    def test_bool_not_stringified(self):
        assert json.loads(dumps({"isValid": True})) == {"isValid": True}
