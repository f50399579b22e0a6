"""CLI entry point for the demo database bootstrap.

Creates missing tables, seeds the demo landlord/renter/unit/lease and prints
bearer tokens for both demo users so the API can be tried with curl.

Usage:
    python -m src.cli.seed

Exit Codes:
    0 - Success: Demo data present
    1 - Failure: Error encountered; nothing from this run was kept

Logging:
    LOG_LEVEL level logs to both stdout and logs/seed.log
"""

import asyncio
import logging
import sys

from src.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


async def main() -> int:
    """
    Main entry point for the demo seed CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    setup_server_logging("logs/seed.log")
    logger.info("Starting demo seed...")

    try:
        from src.services import AsyncSessionLocal, async_engine, init_models
        from src.services.auth_service import create_access_token
        from src.services.seeding import seed_demo_data

        await init_models()
        async with AsyncSessionLocal() as session:
            result = await seed_demo_data(session)

        print(f"Landlord: {result.landlord.email}")
        print(f"  token: {create_access_token(result.landlord)}")
        print(f"Renter:   {result.renter.email}")
        print(f"  token: {create_access_token(result.renter)}")
        print(f"Lease {result.lease.id} on '{result.unit.title}': balance {result.lease.current_balance}")

        await async_engine.dispose()
        return 0

    except KeyboardInterrupt:
        logger.warning("Seed interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Seed failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
