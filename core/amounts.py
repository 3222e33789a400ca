"""
Amount conversion between human-readable units and on-chain base units.

All arithmetic is done in ``Decimal`` under a widened context so uint256-sized
values never lose precision.

Usage:
    from core.amounts import to_base_units, from_base_units

    wei = to_base_units("1.5", 18)          # 1500000000000000000
    human = from_base_units(wei, 18)        # Decimal("1.5")
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

# uint256 has 78 decimal digits; leave headroom for the scaling step
_PRECISION = 100


def _to_decimal(amount: str | int | Decimal) -> Decimal:
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Amount must be finite: {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must be non-negative: {amount!r}")
    return value


def _check_decimals(decimals: int) -> None:
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")


def to_base_units(amount: str | int | Decimal, decimals: int) -> int:
    """Convert a human amount into integer base units.

    Digits beyond ``decimals`` fractional places are truncated, matching
    what a token contract can represent.

    Raises:
        ValueError: if ``amount`` is not a finite non-negative number.
    """
    _check_decimals(decimals)
    value = _to_decimal(amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_base_units(amount: str | int, decimals: int) -> Decimal:
    """Convert base units (int, decimal string or 0x-prefixed hex) into a human amount."""
    _check_decimals(decimals)
    base = parse_quantity(amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(base).scaleb(-decimals)


def format_amount(amount: str | int, decimals: int, places: int) -> str:
    """Human amount from base units, rounded half-up and fixed to ``places`` decimals."""
    human = from_base_units(amount, decimals)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        quantum = Decimal(1).scaleb(-places)
        return str(human.quantize(quantum, rounding=ROUND_HALF_UP))


def parse_quantity(amount: str | int) -> int:
    """Parse an integer quantity given as int, decimal string or 0x-prefixed hex."""
    if isinstance(amount, int):
        quantity = amount
    else:
        text = amount.strip()
        if not text:
            raise ValueError("Empty quantity")
        try:
            if text.lower().startswith("0x"):
                quantity = int(text, 16)
            else:
                quantity = int(text, 10)
        except ValueError as exc:
            raise ValueError(f"Invalid quantity: {amount!r}") from exc
    if quantity < 0:
        raise ValueError(f"Quantity must be non-negative: {amount!r}")
    return quantity


def parse_hex_quantity(value: str | int) -> int:
    """Parse a hex quantity; the ``0x`` prefix is optional, so ``"10"`` is 16."""
    if isinstance(value, int):
        quantity = value
    else:
        try:
            quantity = int(value.strip(), 16)
        except ValueError as exc:
            raise ValueError(f"Invalid hex quantity: {value!r}") from exc
    if quantity < 0:
        raise ValueError(f"Quantity must be non-negative: {value!r}")
    return quantity


def to_hex(quantity: int) -> str:
    """0x-prefixed lowercase hex quantity."""
    if quantity < 0:
        raise ValueError(f"Quantity must be non-negative: {quantity}")
    return hex(quantity)
