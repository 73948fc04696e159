"""Payload coercion for inbound socket commands.

Each helper returns the cleaned value or None. Callers treat None as a
refused command; nothing here raises for bad client input.
"""

import math
from typing import Any, Optional

from yahtzee_server.models import CATEGORIES, DICE_COUNT


def _field(payload: Any, *keys: str) -> Any:
    if not isinstance(payload, dict):
        return None
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def category(value: Any) -> Optional[str]:
    if isinstance(value, str) and value in CATEGORIES:
        return value
    return None


def category_field(payload: Any) -> Optional[str]:
    return category(_field(payload, 'cat', 'category'))


def die_index(value: Any) -> Optional[int]:
    # bool is an int subclass; True must not mean die 1
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    if 0 <= value < DICE_COUNT:
        return value
    return None


def finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # ints of any size are finite; isfinite would overflow on huge ones
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        return None
    return value


def cheat_value(payload: Any, max_value: int) -> Optional[int]:
    """Truncate toward zero and clamp into [0, max_value]."""
    value = finite_number(_field(payload, 'value'))
    if value is None:
        return None
    return max(0, min(max_value, math.trunc(value)))


def player_id(payload: Any) -> Optional[str]:
    value = _field(payload, 'targetId', 'targetSocketId')
    return value if isinstance(value, str) else None
