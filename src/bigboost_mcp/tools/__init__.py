"""Provider lookup tools."""

from .queries import (
    QUERY_TOOLS,
    CnpjParams,
    CpfParams,
    EmailParams,
    QueryParams,
    QueryTool,
    TelefoneParams,
    register_query_tools,
    shape_result,
)

__all__ = [
    "QUERY_TOOLS", "QueryTool", "register_query_tools", "shape_result",
    "QueryParams", "CpfParams", "CnpjParams", "TelefoneParams", "EmailParams",
]
