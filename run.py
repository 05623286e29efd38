#!/usr/bin/env python3
"""
Local launcher for the Open-Source Fund site.

  ./run.py --env development
  ./run.py --env production --no-reload --no-debug
  gunicorn "wsgi:app"   (production; see wsgi.py)
"""

from __future__ import annotations

import argparse
import logging
import os
import socket
import sys

from dotenv import load_dotenv

_ENV_ALIASES = {"dev": "development", "prod": "production", "test": "testing"}
_CONFIGS = {
    "development": "ltcfund.config.DevelopmentConfig",
    "testing": "ltcfund.config.TestingConfig",
    "production": "ltcfund.config.ProductionConfig",
}


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the Open-Source Fund Flask app.")
    p.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))
    p.add_argument(
        "--env",
        default=os.getenv("APP_ENV") or os.getenv("ENV") or "development",
        help="development | testing | production",
    )
    p.add_argument("--config", help="Explicit dotted config path (overrides --env)")
    p.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--no-reload", action="store_true", help="Disable the Werkzeug reloader.")
    p.add_argument("--force", action="store_true", help="Start even if the port looks busy.")
    return p.parse_args(argv)


def _port_in_use(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(0.5)
        return s.connect_ex((host if host != "0.0.0.0" else "127.0.0.1", port)) == 0


def main(argv=None) -> None:
    load_dotenv(override=False)
    args = parse_args(argv)

    env = _ENV_ALIASES.get(args.env.strip().lower(), args.env.strip().lower())
    if env not in _CONFIGS:
        sys.exit(f"Unknown environment: {args.env}")
    os.environ["APP_ENV"] = env

    debug = args.debug if args.debug is not None else env != "production"

    if not args.force and _port_in_use(args.host, args.port):
        logging.error("Port %s already in use (host=%s). Stop the other process or use --force.", args.port, args.host)
        raise SystemExit(2)

    from ltcfund import create_app

    app = create_app(args.config or _CONFIGS[env])
    if env == "production" and debug:
        logging.warning("Debug is on in production; this exposes the Werkzeug debugger.")

    app.run(host=args.host, port=args.port, debug=debug, use_reloader=debug and not args.no_reload)


if __name__ == "__main__":
    main()
