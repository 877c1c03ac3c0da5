"""Bigboost lookup tools: people by CPF, phone or email; companies by CNPJ.

Each tool is a params model plus a ``QueryTool`` entry describing the
provider endpoint, the dataset and how the ``q`` expression is built.
Responses are reshaped to camelCase keys; provider content is otherwise
passed through.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from bigboost_mcp.foundation.errors import JsonDict
from bigboost_mcp.foundation.registry import RegisteredTool, ToolRegistry, register_tool
from bigboost_mcp.foundation.rules import TextRule, digits_only
from bigboost_mcp.io import QueryGateway
from bigboost_mcp.runtime import BoundLogger

# ─────────────────────────────────────────────────────────────────────────────
# Identifier rules
# ─────────────────────────────────────────────────────────────────────────────

CPF_RULE = TextRule(
    min_length=11,
    max_length=14,
    too_short="CPF deve ter pelo menos 11 dígitos",
    too_long="CPF não deve ter mais de 14 caracteres",
    invalid="Formato de CPF inválido",
    pattern=re.compile(r"\d{3}\.?\d{3}\.?\d{3}-?\d{2}"),
)
CNPJ_RULE = TextRule(
    min_length=14,
    max_length=18,
    too_short="CNPJ deve ter pelo menos 14 dígitos",
    too_long="CNPJ não deve ter mais de 18 caracteres",
    invalid="Formato de CNPJ inválido",
    pattern=re.compile(r"\d{2}\.?\d{3}\.?\d{3}/?\d{4}-?\d{2}"),
)
PHONE_RULE = TextRule(
    min_length=8,
    max_length=20,
    too_short="Telefone deve ter pelo menos 8 dígitos",
    too_long="Telefone não deve ter mais de 20 caracteres",
    invalid="Formato de telefone inválido",
    pattern=re.compile(r"(\+\d{1,3})?[\s.\-]?\(?\d{1,3}\)?[\s.\-]?\d{3,5}[\s.\-]?\d{4}"),
)


def _is_email(value: str) -> bool:
    try:
        validate_email(value)
    except PydanticCustomError:
        return False
    return True


EMAIL_RULE = TextRule(
    min_length=5,
    max_length=254,
    too_short="Email deve ter pelo menos 5 caracteres",
    too_long="Email não deve ter mais de 254 caracteres",
    invalid="Formato de email inválido",
    check=_is_email,
)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# Identifiers are trimmed; tags reach the gateway untouched.
_Stripped = BeforeValidator(_strip)

Cpf = Annotated[str, _Stripped, CPF_RULE.validator]
Cnpj = Annotated[str, _Stripped, CNPJ_RULE.validator]
Telefone = Annotated[str, _Stripped, PHONE_RULE.validator]
Email = Annotated[str, _Stripped, EMAIL_RULE.validator]

_TAGS_DESCRIPTION = (
    "Tags opcionais para rastreabilidade (máximo 10; chaves com letras A-Z ou _, "
    "valores com letras, números, espaços ou _*-+,.:!@#&/)"
)


# ─────────────────────────────────────────────────────────────────────────────
# Params
# ─────────────────────────────────────────────────────────────────────────────


class QueryParams(BaseModel):
    """Fields shared by every lookup."""

    tags: dict[str, str] | None = Field(default=None, description=_TAGS_DESCRIPTION)


class CpfParams(QueryParams):
    cpf: Cpf = Field(..., description="CPF da pessoa (com ou sem formatação)")


class CnpjParams(QueryParams):
    cnpj: Cnpj = Field(..., description="CNPJ da empresa (com ou sem formatação)")


class TelefoneParams(QueryParams):
    telefone: Telefone = Field(..., description="Número de telefone (com ou sem DDI/DDD e formatação)")


class EmailParams(QueryParams):
    email: Email = Field(..., description="Endereço de email da pessoa")


# ─────────────────────────────────────────────────────────────────────────────
# Tool table
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class QueryTool:
    """One provider lookup exposed as a tool."""

    name: str
    description: str
    category: str
    params_schema: type[QueryParams]
    endpoint: str
    datasets: str
    query: Callable[[Any], str]
    evidences: bool = False

    def payload(self, params: QueryParams) -> JsonDict:
        return {"q": self.query(params), "Datasets": self.datasets}


QUERY_TOOLS: tuple[QueryTool, ...] = (
    QueryTool(
        name="consultaPessoa",
        description="Consulta dados básicos de uma pessoa pelo CPF",
        category="pessoas",
        params_schema=CpfParams,
        endpoint="/pessoas",
        datasets="basic_data",
        query=lambda p: f"doc{{{digits_only(p.cpf)}}}",
    ),
    QueryTool(
        name="consultaEmpresa",
        description="Consulta dados básicos de uma empresa pelo CNPJ",
        category="empresas",
        params_schema=CnpjParams,
        endpoint="/empresas",
        datasets="basic_data",
        query=lambda p: f"doc{{{digits_only(p.cnpj)}}}",
    ),
    QueryTool(
        name="consultaQsa",
        description="Consulta o Quadro Societário e Administrativo (QSA) de uma empresa pelo CNPJ",
        category="empresas",
        params_schema=CnpjParams,
        endpoint="/empresas",
        datasets="dynamic_qsa_data",
        query=lambda p: f"doc{{{digits_only(p.cnpj)}}}",
    ),
    QueryTool(
        name="consultaRegistroEmpresa",
        description="Consulta dados completos de registro de uma empresa pelo CNPJ, incluindo endereços e contatos",
        category="empresas",
        params_schema=CnpjParams,
        endpoint="/empresas",
        datasets="registration_data",
        query=lambda p: f"doc{{{digits_only(p.cnpj)}}}",
    ),
    QueryTool(
        name="consultaPessoaTelefone",
        description="Consulta dados básicos de uma pessoa pelo número de telefone",
        category="pessoas",
        params_schema=TelefoneParams,
        endpoint="/pessoas",
        datasets="basic_data",
        query=lambda p: f"phone{{{digits_only(p.telefone)}}}",
        evidences=True,
    ),
    QueryTool(
        name="consultaPessoaEmail",
        description="Consulta dados básicos de uma pessoa pelo endereço de email",
        category="pessoas",
        params_schema=EmailParams,
        endpoint="/pessoas",
        datasets="basic_data",
        query=lambda p: f"email{{{p.email}}}",
        evidences=True,
    ),
)


def shape_result(body: object, *, evidences: bool = False) -> JsonDict:
    """Reshape a raw provider body into the tool result."""
    data: Mapping[str, Any] = body if isinstance(body, Mapping) else {}
    shaped: JsonDict = {
        "result": data.get("Result") or [],
        "status": data.get("Status") or {},
        "queryId": data.get("QueryId"),
        "elapsedMilliseconds": data.get("ElapsedMilliseconds"),
        "queryDate": data.get("QueryDate"),
    }
    if evidences:
        shaped["evidences"] = data.get("Evidences") or {}
    return shaped


def _handler(lookup: QueryTool, gateway: QueryGateway) -> Callable[[QueryParams], Any]:
    async def run(params: QueryParams) -> JsonDict:
        body = await gateway.execute_query(lookup.endpoint, lookup.payload(params), params.tags)
        return shape_result(body, evidences=lookup.evidences)

    run.__name__ = lookup.name
    return run


def register_query_tools(
    registry: ToolRegistry,
    gateway: QueryGateway,
    *,
    log: BoundLogger | None = None,
) -> list[RegisteredTool[Any]]:
    """Register every lookup tool against ``gateway``."""
    return [
        register_tool(
            registry, lookup.name, lookup.description, lookup.params_schema, _handler(lookup, gateway),
            category=lookup.category, log=log,
        )
        for lookup in QUERY_TOOLS
    ]
