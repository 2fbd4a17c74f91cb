from __future__ import annotations
"""Request payload coercion helpers.

Each helper returns the coerced value or aborts with 400 and a message naming the field,
so route handlers hand only validated numbers to the decision services.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from flask import abort


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        abort(400, description=f'{field_name} must be a positive integer')
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        abort(400, description=f'{field_name} must be a positive integer')
    if not number.is_finite() or number != number.to_integral_value() or number <= 0:
        abort(400, description=f'{field_name} must be a positive integer')
    return int(number)


def require_non_negative_decimal(value: Any, field_name: str, places: Optional[int] = None) -> Decimal:
    """Coerce to Decimal; with `places`, reject values finer than the column can store."""
    if value is None or isinstance(value, bool):
        abort(400, description=f'{field_name} must be a number')
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        abort(400, description=f'{field_name} must be a number')
    if not number.is_finite() or number < 0:
        abort(400, description=f'{field_name} must be a non-negative number')
    if places is not None and -number.normalize().as_tuple().exponent > places:
        abort(400, description=f'{field_name} allows at most {places} decimal places')
    return number


def require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        abort(400, description=f'{field_name} is required')
    return value.strip()

__all__ = ['require_positive_int', 'require_non_negative_decimal', 'require_text']
