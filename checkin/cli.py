"""Command-line front end for the check-in API.

Useful at the registration desk when the web form is unavailable:

    CHECKIN_API_URL=https://checkin.example python -m checkin.cli validate 6512345
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from checkin.adapters.checkin_rest import CheckInRestAdapter
from checkin.config import ClientConfig
from checkin.domain.entities import ITEM_TYPES
from checkin.domain.ports import UseCaseError
from checkin.usecases.check_in import (
    ListStudents,
    RecordClaim,
    RecordConsent,
    ScanToken,
    SetDistributionStatus,
    ValidateStudent,
)
from checkin.utils.logging import configure_root

log = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI args for one check-in operation."""
    parser = argparse.ArgumentParser(description="Event check-in client.")
    parser.add_argument("--base-url", default=None, help="Overrides CHECKIN_API_URL.")
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Seconds per attempt.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="Validate a student ID and print the QR token.")
    p.add_argument("student_id")

    p = sub.add_parser("consent", help="Record PDPA consent.")
    p.add_argument("student_id")
    p.add_argument("--decline", action="store_true")

    p = sub.add_parser("scan", help="Look up a scanned QR token.")
    p.add_argument("token")

    p = sub.add_parser("claim", help="Record an item hand-out.")
    p.add_argument("token")
    p.add_argument("item_type", choices=ITEM_TYPES)

    p = sub.add_parser("set-status", help="Admin override of an item's collected flag.")
    p.add_argument("student_id")
    p.add_argument("item_type", choices=ITEM_TYPES)
    p.add_argument("--uncollected", action="store_true")

    sub.add_parser("students", help="List every student with collection status.")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> ClientConfig:
    cfg = ClientConfig.from_env()
    overrides = {}
    if args.base_url is not None:
        overrides["base_url"] = args.base_url.rstrip("/")
    if args.retries is not None:
        overrides["max_retries"] = args.retries
    if args.timeout is not None:
        overrides["request_timeout_s"] = args.timeout
    return ClientConfig(**{**asdict(cfg), **overrides})


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    configure_root()
    args = _parse_args(argv)
    adapter = CheckInRestAdapter(_build_config(args))

    try:
        if args.command == "validate":
            result = ValidateStudent(adapter)(args.student_id)
            payload = {"student": asdict(result.student), "token": result.token}
        elif args.command == "consent":
            RecordConsent(adapter)(args.student_id, not args.decline)
            payload = {"consented": not args.decline}
        elif args.command == "scan":
            result = ScanToken(adapter)(args.token)
            payload = asdict(result)
        elif args.command == "claim":
            payload = asdict(RecordClaim(adapter)(args.token, args.item_type))
        elif args.command == "students":
            rows = ListStudents(adapter)()
            payload = {"students": [asdict(row) for row in rows], "total": len(rows)}
        else:
            status = SetDistributionStatus(adapter)(
                args.student_id, args.item_type, not args.uncollected
            )
            payload = asdict(status)
    except UseCaseError as exc:
        log.debug("%s failed with %s", args.command, exc.code)
        print(f"{exc.code}: {exc.message}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
