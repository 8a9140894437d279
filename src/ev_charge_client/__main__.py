"""Run the EV charge map client, or print a charger authorisation code."""
from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config import AppConfig
from .qr import QRCodeManager
from .security import SessionAuthorizer


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ev_charge_client")
    commands = parser.add_subparsers(dest="command")

    issue = commands.add_parser("issue-code", help="write a signed charger code as PNG")
    issue.add_argument("station_id")
    issue.add_argument("output")
    return parser


def issue_code(config: AppConfig, station_id: str, output: str) -> str:
    """Write the authorisation code for ``station_id`` to ``output``; return its digest."""

    token = SessionAuthorizer(config.session_secret).issue(station_id)
    return QRCodeManager(config).save_png(token, output)


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, os.environ.get("EVCHARGE_LOG_LEVEL", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _build_parser().parse_args(argv)
    config = AppConfig.from_env()

    if args.command == "issue-code":
        try:
            digest = issue_code(config, args.station_id, args.output)
        except (ValueError, RuntimeError) as exc:
            print(f"error: {exc}")
            return 1
        print(f"Wrote {args.output} (sha256 {digest})")
        return 0

    from .app import run

    return run(config)


if __name__ == "__main__":  # pragma: no cover - manual launch only
    raise SystemExit(main())
