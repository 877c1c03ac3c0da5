"""Validation of caller-supplied query tags.

Rules enforced by the provider:
1. At most 10 tags per request
2. Keys and values are 1-255 characters long
3. Keys contain only letters A-Z (no accents) or underscore
4. Values contain letters, digits, spaces or one of ``_*-+,.:!@#&/``
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, TypeAlias

from pydantic import AfterValidator, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from bigboost_mcp.foundation.errors import ValidationError
from bigboost_mcp.foundation.rules import TextRule

MAX_TAGS = 10
MAX_LENGTH = 255

KEY_RULE = TextRule(
    min_length=1,
    max_length=MAX_LENGTH,
    too_short="A chave da tag deve ter pelo menos 1 caractere",
    too_long="A chave da tag deve ter no máximo 255 caracteres",
    invalid="A chave da tag deve conter apenas letras A-Z ou _ (underline)",
    pattern=re.compile(r"[A-Za-z_]+"),
)
VALUE_RULE = TextRule(
    min_length=1,
    max_length=MAX_LENGTH,
    too_short="O valor da tag deve ter pelo menos 1 caractere",
    too_long="O valor da tag deve ter no máximo 255 caracteres",
    invalid="O valor da tag deve conter apenas letras, números, espaços ou caracteres especiais permitidos",
    pattern=re.compile(r"[A-Za-z0-9 _*\-+,.:!@#&/]+"),
)
TOO_MANY_TAGS = "Máximo de 10 tags por requisição"


def _check_count(tags: dict[str, str]) -> dict[str, str]:
    if len(tags) > MAX_TAGS:
        raise PydanticCustomError("too_many_tags", TOO_MANY_TAGS)
    return tags


TagKey = Annotated[str, KEY_RULE.validator]
TagValue = Annotated[str, VALUE_RULE.validator]
Tags: TypeAlias = Annotated[dict[TagKey, TagValue], AfterValidator(_check_count)]

_TagsAdapter: TypeAdapter[dict[str, str]] = TypeAdapter(Tags)


def validate_tags(tags: Mapping[str, str]) -> dict[str, str]:
    """Validate tags against the provider rules.

    Returns:
        A plain dict copy of the tags

    Raises:
        ValidationError: one field issue per violated rule, located under ``Tags``
    """
    try:
        return _TagsAdapter.validate_python(dict(tags))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, prefix="Tags") from e
