"""Command-line entry point: ``bigboost-mcp``.

Loads settings from the environment (and ``.env``), configures logging and
starts the server on the chosen transport. Missing credentials abort with
exit status 1.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import pydantic

from bigboost_mcp import __version__
from bigboost_mcp.ext.mcp import create_server
from bigboost_mcp.foundation.config import BigboostSettings, get_settings
from bigboost_mcp.runtime import configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bigboost-mcp",
        description="Servidor MCP para consultas na API Bigboost (BigDataCorp)",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http", "sse", "streamable-http"],
        help="Transport to serve on (default: BIGBOOST_SERVER_TRANSPORT or stdio)",
    )
    parser.add_argument("--host", help="Bind address for network transports")
    parser.add_argument("--port", type=int, help="Port for network transports")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override BIGBOOST_LOG_LEVEL",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings() -> BigboostSettings:
    """Load settings, exiting with status 1 on configuration errors."""
    try:
        return get_settings()
    except pydantic.ValidationError as e:
        lines = [f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors(include_url=False)]
        print("Erro de configuração:\n" + "\n".join(lines), file=sys.stderr)
        print("Defina BIGBOOST_ACCESS_TOKEN e BIGBOOST_TOKEN_ID no ambiente ou em .env", file=sys.stderr)
        raise SystemExit(1) from e


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()

    level = args.log_level or settings.logging.level
    log_file = settings.logging.file.open("a", encoding="utf-8") if settings.logging.file else None
    try:
        configure_logging(settings.logging.format, level, file=log_file)
        log = get_logger("bigboost", server=settings.server.name)
        server = create_server(settings, log=log)
        try:
            server.run(args.transport, host=args.host, port=args.port)
        except KeyboardInterrupt:
            log.info("server stopped")
    finally:
        if log_file is not None:
            log_file.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
