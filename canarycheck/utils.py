"""Small helpers for durations and string sets."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

_MICROS_PER_MS = 1000
_MICROS_PER_SECOND = 1_000_000


def _truncating_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def _human_duration(micros: int) -> str:
    seconds = _truncating_div(micros, _MICROS_PER_SECOND)
    if seconds < -1:
        return "<invalid>"
    if seconds < 0:
        return "0s"
    if seconds < 60 * 2:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 10:
        s = seconds % 60
        return f"{minutes}m" if s == 0 else f"{minutes}m{s}s"
    if minutes < 60 * 3:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 8:
        m = minutes % 60
        return f"{hours}h" if m == 0 else f"{hours}h{m}m"
    if hours < 48:
        return f"{hours}h"
    if hours < 24 * 8:
        h = hours % 24
        return f"{hours // 24}d" if h == 0 else f"{hours // 24}d{h}h"
    if hours < 24 * 365 * 2:
        return f"{hours // 24}d"
    if hours < 24 * 365 * 8:
        days = (hours // 24) % 365
        years = hours // 24 // 365
        return f"{years}y" if days == 0 else f"{years}y{days}d"
    return f"{hours // 24 // 365}y"


def age(duration: timedelta) -> str:
    """Render a duration briefly: milliseconds below a second, otherwise a human form."""
    micros = duration // timedelta(microseconds=1)
    millis = _truncating_div(micros, _MICROS_PER_MS)
    if millis == 0:
        return "0ms"
    if millis < 1000:
        return f"{millis}ms"
    return _human_duration(micros)


def set_difference(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Elements of ``a``, in order, that are not present in ``b``."""
    excluded = set(b)
    return [x for x in a if x not in excluded]