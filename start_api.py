#!/usr/bin/env python3
"""
Startup script for the RaagConnect API server.

Usage:
    python start_api.py              # Development mode
    python start_api.py --prod       # Production mode
    python start_api.py --port 8080  # Custom port
"""

import argparse
import logging
import os

import uvicorn

APP = "api.main:app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Start the RaagConnect API")
    parser.add_argument("--host", default=os.getenv("API_HOST", "0.0.0.0"), help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8001")), help="Port to bind to (default: 8001)")
    parser.add_argument("--prod", action="store_true", help="Run in production mode (no auto-reload)")
    parser.add_argument("--workers", type=int, default=1, help="Number of worker processes (default: 1)")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload in development mode")
    return parser


def uvicorn_options(args: argparse.Namespace) -> dict:
    """Translate CLI flags into ``uvicorn.run`` keyword arguments."""
    options = {
        "app": APP,
        "host": args.host,
        "port": args.port,
        "loop": "asyncio",
        "http": "h11",
    }
    if args.prod:
        options.update({"workers": args.workers, "log_level": "info"})
        return options

    options["log_level"] = "debug"
    if not args.no_reload:
        options.update({
            "reload": True,
            "reload_dirs": ["api", "discovery", "ingest"],
            "reload_delay": 1.0,
        })
    return options


def main(argv=None):
    """Start the FastAPI server with configurable options."""
    # Set environment variable for efficient file watching
    os.environ.setdefault("WATCHFILES_FORCE_POLLING", "1")
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    mode = "PRODUCTION" if args.prod else "DEVELOPMENT"
    print(f"🎵 Starting RaagConnect API in {mode} mode")
    print(f"   📍 http://{args.host}:{args.port}")
    if args.prod:
        print(f"   👷 {args.workers} worker(s)")
    else:
        print(f"   📚 API docs: http://{args.host}:{args.port}/docs")

    uvicorn.run(**uvicorn_options(args))


if __name__ == "__main__":
    main()
