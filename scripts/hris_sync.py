#!/usr/bin/env python3
"""Run one HRIS sync for one organization.

Meant for schedulers (cron, container jobs). Run from the project root:

    python3 scripts/hris_sync.py --organization-id ORG --account-token TOKEN [--user-id USER] [--verbose]

Exit codes: 0 on a clean run, 1 when some employees failed, 2 when the run
could not start (provider unreachable, services not configured).

The scheduler must not start two runs for the same organization at once.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from app.core.config import Settings  # noqa: E402
from app.core.cosmos import cosmos_database  # noqa: E402
from app.models.hris import SyncResult  # noqa: E402
from app.services.employee_service import employee_service  # noqa: E402
from app.services.hris_sync_service import hris_sync_service  # noqa: E402
from app.services.merge_client import merge_client  # noqa: E402
from app.services.person_service import person_service  # noqa: E402

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = "system:hris-sync"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync employees from the Merge HRIS provider into Employee and Person records",
    )
    parser.add_argument("--organization-id", required=True, help="Organization to sync into")
    parser.add_argument(
        "--account-token",
        default=os.environ.get("MERGE_ACCOUNT_TOKEN"),
        help="Merge linked account token (default: $MERGE_ACCOUNT_TOKEN)",
    )
    parser.add_argument(
        "--user-id",
        default=SYSTEM_USER_ID,
        help=f"Actor recorded on Person writes (default: {SYSTEM_USER_ID})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    args = parser.parse_args(argv)
    if not args.account_token:
        parser.error("--account-token or MERGE_ACCOUNT_TOKEN is required")
    return args


def exit_code_for(result: SyncResult) -> int:
    return 1 if result.errors else 0


async def run_sync(args: argparse.Namespace) -> SyncResult:
    settings = Settings()

    await cosmos_database.initialize(settings)
    await employee_service.initialize(settings)
    await person_service.initialize(settings)
    await merge_client.initialize(settings)
    try:
        return await hris_sync_service.sync_employees(
            args.account_token,
            args.organization_id,
            args.user_id,
        )
    finally:
        await merge_client.close()
        await person_service.close()
        await employee_service.close()
        await cosmos_database.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    try:
        result = asyncio.run(run_sync(args))
    except Exception:
        logger.exception("HRIS sync for organization %s aborted", args.organization_id)
        return 2

    for error in result.errors:
        logger.error("Employee %s failed: %s", error.employee_id, error.error)
    return exit_code_for(result)


if __name__ == "__main__":
    sys.exit(main())
