"""Command-line entry point for the solver session console server."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="optirun", description="Serve the solver session console backend.")
    p.add_argument("--host", type=str, default="127.0.0.1", help="Bind host (default: 127.0.0.1).")
    p.add_argument("--port", type=int, default=8765, help="Bind port (default: 8765).")
    p.add_argument(
        "--project-dir",
        type=str,
        default=".",
        help="Directory for .optirun/ state and the solver working directory (default: cwd).",
    )
    p.add_argument(
        "--manual-analysis",
        action="store_true",
        help="Do not analyze automatically when a run exits; wait for an explicit request.",
    )
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: INFO).")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    from .api import create_app

    app = create_app(
        project_dir=Path(args.project_dir),
        auto_analyze_on_exit=not args.manual_analysis,
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=str(args.log_level).lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
