"""Error taxonomy for provider queries.

Every failure a tool can surface is one of a closed set of variants sharing
the ``BigboostError`` base. Each variant carries an ``ErrorKind`` tag and the
data its rendered payload needs; rendering itself lives in ``formatting``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum

import pydantic

from .codes import StatusCodeCategory, classify, is_error
from .types import FieldIssue, StatusEntry

UNKNOWN_ERROR_MESSAGE = "Erro desconhecido"
UNKNOWN_DATASET = "desconhecido"
DATASET_UNAVAILABLE = "DATASET UNAVAILABLE"


class ErrorKind(StrEnum):
    """Discriminator for the error variants."""

    VALIDATION = "validation"
    PROVIDER_STATUS = "provider_status"
    RATE_LIMITED = "rate_limited"
    DATASET_UNAVAILABLE = "dataset_unavailable"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class BigboostError(Exception):
    """Base class for all surfaced query failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(BigboostError):
    """Caller input rejected by a schema. Carries field-level messages."""

    kind = ErrorKind.VALIDATION
    __slots__ = ("issues",)

    def __init__(self, issues: Sequence[FieldIssue]) -> None:
        self.issues: tuple[FieldIssue, ...] = tuple(issues)
        super().__init__("; ".join(str(i) for i in self.issues) or "Parâmetros inválidos")

    @classmethod
    def single(cls, field: str, message: str) -> ValidationError:
        return cls([FieldIssue(field=field, message=message)])

    @classmethod
    def from_pydantic(cls, exc: pydantic.ValidationError, *, prefix: str = "") -> ValidationError:
        """Translate a pydantic failure, keeping custom validator messages verbatim."""
        issues = []
        for err in exc.errors(include_url=False):
            loc = ".".join(str(part) for part in err.get("loc", ()))
            if prefix:
                loc = f"{prefix}.{loc}" if loc else prefix
            ctx_error = (err.get("ctx") or {}).get("error")
            msg = str(ctx_error) if err.get("type") == "value_error" and ctx_error else err["msg"]
            issues.append(FieldIssue(field=loc, message=msg))
        return cls(issues)


class ProviderStatusError(BigboostError):
    """The provider reported a negative status code."""

    kind = ErrorKind.PROVIDER_STATUS
    __slots__ = ("code", "category", "dataset")

    def __init__(
        self,
        code: int,
        message: str,
        category: StatusCodeCategory | None = None,
        *,
        dataset: str | None = None,
    ) -> None:
        self.code = code
        self.category = category or classify(code)
        self.dataset = dataset
        super().__init__(message)


class RateLimitExceededError(BigboostError):
    """Local or provider-side admission failure."""

    kind = ErrorKind.RATE_LIMITED
    __slots__ = ("wait_time_ms",)

    def __init__(self, wait_time_ms: float) -> None:
        self.wait_time_ms = wait_time_ms
        super().__init__(
            f"Limite de requisições excedido. Tente novamente em {self.wait_seconds} segundos."
        )

    @property
    def wait_seconds(self) -> int:
        """Wait hint rounded up to whole seconds."""
        return math.ceil(self.wait_time_ms / 1000)


class DatasetUnavailableError(BigboostError):
    """The caller is not entitled to a requested dataset."""

    kind = ErrorKind.DATASET_UNAVAILABLE
    __slots__ = ("dataset",)

    def __init__(self, dataset: str) -> None:
        self.dataset = dataset
        super().__init__(f'Dataset "{dataset}" não está disponível para o seu usuário.')


class TransportError(BigboostError):
    """HTTP or network failure talking to the provider."""

    kind = ErrorKind.TRANSPORT
    __slots__ = ("status", "upstream")

    def __init__(self, status: int, upstream: str) -> None:
        self.status = status
        self.upstream = upstream
        super().__init__(f"Erro na consulta ({status}): {upstream}")


class UnknownError(BigboostError):
    """Catch-all for failures outside the taxonomy."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str = UNKNOWN_ERROR_MESSAGE) -> None:
        super().__init__(message or UNKNOWN_ERROR_MESSAGE)


def process_status_codes(statuses: Iterable[StatusEntry | Mapping] | None) -> None:
    """Raise for the first status entry, in order, whose code is an error.

    Raises:
        ProviderStatusError: carrying the entry's code, message and category
    """
    for entry in _entries(statuses):
        if is_error(entry.code):
            raise ProviderStatusError(entry.code, entry.message, classify(entry.code), dataset=entry.dataset)


def check_dataset_availability(statuses: Iterable[StatusEntry | Mapping] | None) -> None:
    """Raise if any entry carries the provider's dataset-unavailable sentinel."""
    for entry in _entries(statuses):
        if entry.message == DATASET_UNAVAILABLE:
            raise DatasetUnavailableError(entry.dataset or UNKNOWN_DATASET)


def to_bigboost_error(value: object) -> BigboostError:
    """Coerce any raised value into the taxonomy."""
    match value:
        case BigboostError():
            return value
        case pydantic.ValidationError():
            return ValidationError.from_pydantic(value)
        case Exception():
            return UnknownError(str(value))
        case _:
            return UnknownError()


def _entries(statuses: Iterable[StatusEntry | Mapping] | None) -> Iterable[StatusEntry]:
    for entry in statuses or ():
        yield entry if isinstance(entry, StatusEntry) else StatusEntry.model_validate(entry)
