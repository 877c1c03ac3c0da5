"""String constraints with fixed, localized messages.

Pydantic's built-in ``min_length``/``max_length``/``pattern`` constraints
report English messages. Callers of this server see Portuguese ones, so
constraints are expressed as after-validators raising ``PydanticCustomError``
with the message text as the template. Checks run in order: minimum length,
maximum length, then format.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import AfterValidator
from pydantic_core import PydanticCustomError


@dataclass(frozen=True, slots=True)
class TextRule:
    """Length bounds plus a format check, each with its own message."""

    min_length: int
    max_length: int
    too_short: str
    too_long: str
    invalid: str
    pattern: re.Pattern[str] | None = None
    check: Callable[[str], bool] | None = None

    def __call__(self, value: str) -> str:
        if len(value) < self.min_length:
            raise PydanticCustomError("too_short", self.too_short)
        if len(value) > self.max_length:
            raise PydanticCustomError("too_long", self.too_long)
        if self.pattern is not None and not self.pattern.fullmatch(value):
            raise PydanticCustomError("invalid_format", self.invalid)
        if self.check is not None and not self.check(value):
            raise PydanticCustomError("invalid_format", self.invalid)
        return value

    @property
    def validator(self) -> AfterValidator:
        return AfterValidator(self)


def digits_only(value: str) -> str:
    """Strip every non-digit character (dots, slashes, dashes, spaces, parentheses)."""
    return re.sub(r"\D", "", value)
