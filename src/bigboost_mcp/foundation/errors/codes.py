"""Provider status code classification.

Bigboost reports per-dataset outcomes as signed integer codes. Negative codes
are failures and fall into fixed bands; everything outside the bands is
treated as an internal provider problem.
"""

from __future__ import annotations

from enum import StrEnum


class StatusCodeCategory(StrEnum):
    """Semantic band of a provider status code."""

    INPUT_DATA = "INPUT_DATA"   # -100 .. -999
    LOGIN = "LOGIN"             # -1000 .. -1199
    INTERNAL = "INTERNAL"       # -1200 .. -1999, and the fallback
    ON_DEMAND = "ON_DEMAND"     # -2000 .. -2999
    MONITORING = "MONITORING"   # -3000 and below


# (low, high) inclusive bounds, checked in order
_BANDS: tuple[tuple[int, int, StatusCodeCategory], ...] = (
    (-999, -100, StatusCodeCategory.INPUT_DATA),
    (-1199, -1000, StatusCodeCategory.LOGIN),
    (-1999, -1200, StatusCodeCategory.INTERNAL),
    (-2999, -2000, StatusCodeCategory.ON_DEMAND),
)


def classify(code: int) -> StatusCodeCategory:
    """Map a provider status code to its category. Total and pure."""
    if code <= -3000:
        return StatusCodeCategory.MONITORING
    for low, high, category in _BANDS:
        if low <= code <= high:
            return category
    return StatusCodeCategory.INTERNAL


def is_error(code: int) -> bool:
    """Whether a status code signals failure."""
    return code < 0
