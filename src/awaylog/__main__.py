"""Run the awaylog API server: ``python -m awaylog``."""

from __future__ import annotations

import argparse

import uvicorn

from awaylog.api import create_app
from awaylog.core.config import Config


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="awaylog", description="Serve the awaylog API.")
    parser.add_argument("--host", default=None, help="Bind address (AWAYLOG_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (AWAYLOG_PORT)")
    parser.add_argument("--log-level", default=None, help="Log level (AWAYLOG_LOG_LEVEL)")
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Emit JSON log lines (AWAYLOG_LOG_JSON)",
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="Storage backend: memory, file or redis (AWAYLOG_STORAGE_BACKEND)",
    )
    args = parser.parse_args(argv)

    config = Config.from_env(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        log_json=args.log_json,
        storage_backend=args.storage,
    )
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
