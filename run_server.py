"""API server entry point.

Usage:
    # Development:
    python run_server.py --reload

    # Custom host/port:
    python run_server.py --host 0.0.0.0 --port 9000
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure contractor_margin is importable regardless of CWD
sys.path.insert(0, str(Path(__file__).resolve().parent))

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Contractor Margin API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--db-path", default=None, help="SQLite database file (default: CM_API_DB_PATH)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )

    import uvicorn

    from contractor_margin.api.config import ApiSettings

    overrides = {"host": args.host, "port": args.port, "log_level": args.log_level.upper()}
    if args.db_path:
        overrides["db_path"] = args.db_path
    settings = ApiSettings(**overrides)

    logger.info("Starting Contractor Margin API on %s:%s", args.host, args.port)
    if args.reload:
        # The reloader re-imports the app in a subprocess, so settings travel via env
        import os

        for key, value in overrides.items():
            os.environ[f"CM_API_{key.upper()}"] = str(value)
        uvicorn.run(
            "contractor_margin.api.main:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
        )
        return

    from contractor_margin.api.main import create_app

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
