"""CLI commands for management tasks."""

import asyncio
import sys

from edura.core.clock import SystemClock
from edura.core.config import settings
from edura.core.database import async_session_maker
from edura.core.logging import configure_logging
from edura.services import attendance as attendance_service
from edura.services import billing as billing_service
from edura.services import user as user_service

USAGE = """Usage: python -m edura.cli <command>
Commands:
  create-manager <email> <password> <name>
  generate-bills
  mark-missed-sessions"""


async def create_manager(email: str, password: str, name: str) -> None:
    """Create a manager account (a new learning center)."""
    async with async_session_maker() as db:
        if await user_service.get_user_by_email(db, email):
            print(f"Error: Email {email} is already registered!")
            sys.exit(1)

        manager = await user_service.create_manager(db, email, name, password)

        print("✓ Manager created successfully!")
        print(f"  ID: {manager.id}")
        print(f"  Name: {manager.name}")
        print(f"  Email: {manager.email}")


async def generate_bills() -> None:
    """Run the monthly bill generation now."""
    now = SystemClock(settings.TIMEZONE).now()
    async with async_session_maker() as db:
        result = await billing_service.generate_monthly_bills(db, now)

    print(f"✓ Bills for {result.billing_month}: {result.created} created, {result.skipped} skipped")


async def mark_missed_sessions() -> None:
    """Run the daily missed-session reconciliation now."""
    now = SystemClock(settings.TIMEZONE).now()
    async with async_session_maker() as db:
        result = await attendance_service.mark_missed_sessions(db, now)

    print(
        f"✓ Sessions on {result.session_date}: {result.marked} marked missed, "
        f"{result.checked} checked, {result.failed} failed"
    )


def main() -> None:
    """CLI entry point."""
    configure_logging(settings.LOG_LEVEL)

    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "create-manager":
        if len(sys.argv) != 5:
            print("Usage: python -m edura.cli create-manager <email> <password> <name>")
            sys.exit(1)

        _, _, email, password, name = sys.argv
        asyncio.run(create_manager(email, password, name))
    elif command == "generate-bills":
        asyncio.run(generate_bills())
    elif command == "mark-missed-sessions":
        asyncio.run(mark_missed_sessions())
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
