"""
Serialization utilities for the bridge quote engine.

JSON encoding for session state dumps: Decimal amounts, HexBytes from web3
responses, enums, and uint256 base-unit integers that do not fit a double.

Usage:
    from shared.serialization_utils import DecimalEncoder
    json.dumps(controller.get_state(), cls=DecimalEncoder)
"""

import json
from decimal import Decimal
from enum import Enum
from json import JSONEncoder
from typing import Any

from hexbytes import HexBytes


class DecimalEncoder(JSONEncoder):
    """
    JSON encoder handling Decimal, HexBytes/bytes, enums and large integers.

    Integers beyond 2^53 - 1 are emitted as strings so token amounts keep
    full precision in JSON consumers.
    """

    _MAX_SAFE_INTEGER = 2**53 - 1

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (HexBytes, bytes)):
            return HexBytes(obj).to_0x_hex()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)

    def encode(self, obj: Any) -> str:
        return super().encode(self._convert_large_ints(obj))

    def _convert_large_ints(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._convert_large_ints(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._convert_large_ints(item) for item in obj]
        elif isinstance(obj, int) and not isinstance(obj, bool) and abs(obj) > self._MAX_SAFE_INTEGER:
            return str(obj)
        return obj


def dumps(obj: Any, **kwargs: Any) -> str:
    """``json.dumps`` with ``DecimalEncoder``."""
    return json.dumps(obj, cls=DecimalEncoder, **kwargs)
