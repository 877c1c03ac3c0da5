"""Value types shared by the error pipeline.

Uses Pydantic models for validation/serialization. Both types are frozen and
live only for the duration of one provider call.
"""

from __future__ import annotations

from typing import Any, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, field_validator

JsonDict: TypeAlias = dict[str, Any]


class StatusEntry(BaseModel):
    """One ``{code, message, dataset?}`` tuple reported by the provider.

    Accepts both the lower-case list form (``code``/``message``) and the
    capitalised per-dataset form (``Code``/``Message``).
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    code: StrictInt = Field(validation_alias=AliasChoices("code", "Code"))
    message: str = Field(default="", validation_alias=AliasChoices("message", "Message"))
    dataset: str | None = Field(default=None, validation_alias=AliasChoices("dataset", "Dataset"))

    @field_validator("message", mode="before")
    @classmethod
    def _null_message(cls, v: Any) -> Any:
        return "" if v is None else v


class FieldIssue(BaseModel):
    """A single field-level validation failure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message
