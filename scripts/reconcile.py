#!/usr/bin/env python3
"""Run ledger reconciliation and print the findings."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from app.config.database import async_session_maker, close_db  # noqa: E402
from app.config.settings import settings  # noqa: E402
from app.services.reconciliation_service import (  # noqa: E402
    ReconciliationService,
)
from app.utils.logging_config import setup_logging  # noqa: E402


async def main() -> int:
    """Run all checks; exit code 1 if anything is off."""
    setup_logging(settings)

    try:
        async with async_session_maker() as session:
            report = await ReconciliationService(
                session
            ).perform_reconciliation()
    finally:
        await close_db()

    for item in report["inconsistent_accounts"]:
        logger.warning(f"Inconsistent account: {item}")
    for item in report["unpaid_verifications"]:
        logger.warning(f"Unpaid verification reward: {item}")
    for item in report["unpaid_commissions"]:
        logger.warning(f"Unpaid referral commission: {item}")

    return 0 if report["ok"] else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
