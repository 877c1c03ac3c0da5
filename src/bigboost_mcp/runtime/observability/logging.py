"""Structured logging with bound and scoped context.

Loggers carry a context dict that is merged into every entry; ``log_context``
adds keys for everything logged inside a scope, including by loggers that
were created elsewhere (the registry scopes each invocation to its tool, so
gateway entries carry ``tool`` too).

Output never goes to stdout: the stdio transport owns it for protocol frames.

    >>> configure_logging(format="json", level="DEBUG")
    >>> log = get_logger("gateway").bind(endpoint="/pessoas")
    >>> with log_context(tool="consultaPessoa"):
    ...     log.info("query sent")
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

JsonDict = dict[str, Any]

_scoped: ContextVar[JsonDict] = ContextVar("bigboost_log_scope", default={})
_renderer: ContextVar[LogRenderer | None] = ContextVar("bigboost_log_renderer", default=None)
_default_level: ContextVar[int] = ContextVar("bigboost_log_level", default=logging.INFO)


@dataclass(slots=True)
class LogEntry:
    timestamp: float
    level: str
    event: str
    context: JsonDict

    def iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()


@dataclass(slots=True)
class BoundLogger:
    """Logger with immutable bound context; ``bind`` returns a new logger."""

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int = logging.DEBUG

    def bind(self, **kw: Any) -> BoundLogger:
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def _log(self, level: int, event: str, **kw: Any) -> None:
        if level < self._level:
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event,
                         {**_scoped.get(), **self.context, **kw})
        (self._renderer or _active_renderer()).render(entry)

    def debug(self, event: str, **kw: Any) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: Any) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: Any) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: Any) -> None: self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Error entry with the active exception's traceback under ``exc_info``."""
        self._log(logging.ERROR, event, exc_info=traceback.format_exc(), **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_ANSI = {"reset": "\033[0m", "dim": "\033[2m", "bold": "\033[1m", "key": "\033[36m",
         "debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m"}
_PLAIN = dict.fromkeys(_ANSI, "")


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...`` lines, colored on a tty."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        c = _ANSI if self.colors else _PLAIN
        stamp = datetime.fromtimestamp(entry.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]
        fields = " ".join(f"{c['key']}{k}{c['reset']}={_console_value(v)}"
                          for k, v in sorted(entry.context.items()) if k != "exc_info")
        line = (f"{c['dim']}{stamp}{c['reset']} {c[entry.level]}[{entry.level}]{c['reset']} "
                f"{c['bold']}{entry.event}{c['reset']}")
        print(f"{line} {fields}" if fields else line, file=self.output, flush=True)
        if tb := entry.context.get("exc_info"):
            print(tb, file=self.output, flush=True)


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line."""

    output: TextIO = field(default_factory=lambda: sys.stderr)

    def render(self, entry: LogEntry) -> None:
        record = {"timestamp": entry.iso(), "level": entry.level, "event": entry.event, **entry.context}
        line = orjson.dumps(record, default=str, option=orjson.OPT_NON_STR_KEYS).decode()
        print(line, file=self.output, flush=True)


@dataclass(slots=True)
class TeeRenderer:
    renderers: tuple[LogRenderer, ...] = ()

    def render(self, entry: LogEntry) -> None:
        for renderer in self.renderers:
            renderer.render(entry)


@dataclass(slots=True)
class MemoryRenderer:
    """Keeps entries in memory for assertions."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self, level: str | None = None) -> list[str]:
        return [e.event for e in self.entries if level is None or e.level == level]


class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        pass


def _console_value(v: object) -> str:
    match v:
        case str(): return f'"{v}"'
        case bool(): return str(v).lower()
        case dict() | list() | tuple(): return f"<{len(v)} items>"
        case _: return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    file: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the process-wide renderer: ``console``, ``json`` or ``none``.

    When ``file`` is given, entries are also written to it as JSON lines.
    """
    _default_level.set(getattr(logging, level.upper(), logging.INFO))
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stderr)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown log format: {format!r}")
    if file is not None:
        renderer = TeeRenderer((renderer, JsonRenderer(output=file)))
    _renderer.set(renderer)
    return renderer


def get_logger(name: str | None = None, **context: Any) -> BoundLogger:
    """Logger at the configured level; ``name`` is bound as ``logger``."""
    if name:
        context["logger"] = name
    return BoundLogger(context=context, _level=_default_level.get())


def _active_renderer() -> LogRenderer:
    if (renderer := _renderer.get()) is None:
        _renderer.set(renderer := ConsoleRenderer())
    return renderer


class log_context:
    """Scope extra context onto every entry logged inside the ``with`` block."""

    __slots__ = ("_extra", "_token")

    def __init__(self, **kw: Any) -> None:
        self._extra: JsonDict = kw
        self._token: Any = None

    def __enter__(self) -> log_context:
        self._token = _scoped.set({**_scoped.get(), **self._extra})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        _scoped.reset(self._token)
