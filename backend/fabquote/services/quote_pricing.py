"""Quote pricing: line totals, subtotal and discounted total.

Pure functions only; callers persist the results. Amounts are ``Decimal`` and
quantized to cents with half-up rounding, matching the ``Numeric(12, 2)``
columns they are written to.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Mapping

_CENT = Decimal("0.01")
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    total: Decimal


def _to_decimal(value: Any, default: Decimal = _ZERO) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def _read_field(source: Any, *keys: str) -> Any:
    """Read the first present key from a mapping or attribute-style object."""
    for key in keys:
        if isinstance(source, Mapping):
            if key in source:
                return source[key]
        elif hasattr(source, key):
            return getattr(source, key)
    return None


def to_money(value: Any) -> Decimal:
    return _to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: Any, unit_price: Any) -> Decimal:
    """``quantity * unit_price`` at currency precision."""
    return to_money(_to_decimal(quantity) * _to_decimal(unit_price))


def apply_discount(
    subtotal: Any,
    discount_percentage: Any = None,
    discount_amount: Any = None,
) -> Decimal:
    """Return the discounted total, never below zero.

    A positive percentage wins over a positive amount when both are set.
    """
    base = _to_decimal(subtotal)
    percentage = _to_decimal(discount_percentage)
    amount = _to_decimal(discount_amount)
    if percentage > _ZERO:
        total = base - (base * percentage / _HUNDRED)
    elif amount > _ZERO:
        total = base - amount
    else:
        total = base
    return to_money(max(_ZERO, total))


def recalculate(
    items: Iterable[Any],
    discount_percentage: Any = None,
    discount_amount: Any = None,
) -> QuoteTotals:
    """Compute quote ``subtotal`` and ``total`` from its line items.

    ``items`` may be mappings or objects exposing ``quantity`` and
    ``unit_price`` (``unitPrice`` is accepted for mappings built from request
    payloads). An empty iterable yields a zero subtotal.
    """
    subtotal = _ZERO
    for item in items:
        quantity = _read_field(item, "quantity")
        unit_price = _read_field(item, "unit_price", "unitPrice")
        subtotal += line_total(quantity, unit_price)
    subtotal = to_money(subtotal)
    return QuoteTotals(
        subtotal=subtotal,
        total=apply_discount(subtotal, discount_percentage, discount_amount),
    )
