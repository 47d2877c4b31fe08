"""Entrypoint.

Usage:
  python -m twquant.app.main refresh [--strict] [--pretty-logs] [--config PATH]   # one refresh cycle, JSON to stdout
  python -m twquant.app.main api [--config PATH]                                  # run FastAPI server
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Sequence

import uvicorn

from twquant.app.engine import run_refresh, snapshot_summary


def _p(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser("twquant")
    parser.add_argument("command", choices=["refresh", "api"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="YAML config path")
    parser.add_argument("--strict", action="store_true", help="Only symbols passing the strict screen")
    parser.add_argument("--pretty-logs", action="store_true", help="Human-readable console logs instead of JSON")
    args = parser.parse_args(argv)

    if args.command == "refresh":
        state = asyncio.run(run_refresh(args.config, json_logs=not args.pretty_logs))
        selected = state.screen.screen(state.snapshots, strict=args.strict)
        _p(
            {
                "stats": state.stats.__dict__,
                "snapshots": [snapshot_summary(s, state.screen) for s in selected],
            }
        )
        return

    if args.command == "api":
        from twquant.infrastructure.utils.config import reload_config

        config = reload_config(args.config)
        uvicorn.run("twquant.api.server:app", host=config.api.host, port=config.api.port, reload=False)
        return


if __name__ == "__main__":
    main()
