"""
Console command to purge expired OTP codes.

Usage:
    docspace-purge-otps
    docspace-purge-otps --dry-run
"""
import argparse
import asyncio
import logging
from typing import Optional, Sequence

from sqlalchemy import func, select

from docspace.core.config import Settings, get_settings
from docspace.core.db import Database
from docspace.core.logging_config import configure_logging
from docspace.db.base import CredentialBase, utcnow
from docspace.db.models.user import UserOTP
from docspace.domains.identity.services import OTPService

logger = logging.getLogger("docspace.commands")


async def purge_expired_otps(settings: Settings, dry_run: bool = False) -> int:
    """Delete (or just count) OTP rows past their expiry"""
    database = Database(settings.database_url, echo=settings.sql_echo)
    try:
        if settings.create_tables:
            await database.create_all(CredentialBase.metadata)
        async with database.session_factory() as session:
            if dry_run:
                result = await session.execute(
                    select(func.count(UserOTP.id)).where(UserOTP.expires_at < utcnow())
                )
                return result.scalar_one()
            return await OTPService(session, settings).purge_expired()
    finally:
        await database.dispose()


def purge_otps(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Purge expired OTP codes")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show how many codes would be deleted without deleting them",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    count = asyncio.run(purge_expired_otps(settings, dry_run=args.dry_run))

    if args.dry_run:
        print(f"[DRY RUN] Would purge {count} expired OTP code(s)")
    else:
        print(f"Successfully purged {count} expired OTP code(s)")
    return 0
