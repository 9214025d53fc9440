from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.errors import UserAlreadyExistsError, UserCreationError, UserDeletionError
from docspace.db.models.user import User, UserOTP


class UserRepository:
    """Queries over the users table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Insert a user; duplicates surface as UserAlreadyExistsError"""
        email, national_id = user.email, user.national_id
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            if await self.email_exists(email):
                raise UserAlreadyExistsError("Email already exists")
            raise UserAlreadyExistsError("National Id already exists")
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise UserCreationError(email) from e
        await self.session.refresh(user)
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(User.national_id).where(User.email == email.lower())
        )
        return result.scalar_one_or_none() is not None

    async def national_id_exists(self, national_id: str) -> bool:
        result = await self.session.execute(
            select(User.national_id).where(User.national_id == national_id)
        )
        return result.scalar_one_or_none() is not None

    async def get_all(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def delete(self, user: User) -> None:
        email = user.email
        try:
            await self.session.delete(user)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise UserDeletionError(email) from e


class UserOTPRepository:
    """Queries over the user_otps table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[UserOTP]:
        result = await self.session.execute(select(UserOTP).where(UserOTP.email == email))
        return result.scalar_one_or_none()

    async def upsert(self, email: str, otp_code: str, expires_at: datetime) -> UserOTP:
        """Create or overwrite the single code row for an email"""
        otp = await self.get_by_email(email)
        if otp is None:
            otp = UserOTP(email=email, otp_code=otp_code, expires_at=expires_at, used=False)
            self.session.add(otp)
            try:
                await self.session.commit()
                return otp
            except IntegrityError:
                # Another request inserted the row first
                await self.session.rollback()
                otp = await self.get_by_email(email)

        otp.otp_code = otp_code
        otp.expires_at = expires_at
        otp.used = False
        await self.session.commit()
        return otp

    async def get_active(self, email: str, otp_code: str, now: datetime) -> Optional[UserOTP]:
        result = await self.session.execute(
            select(UserOTP).where(
                UserOTP.email == email,
                UserOTP.otp_code == otp_code,
                UserOTP.used.is_(False),
                UserOTP.expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def mark_used(self, otp: UserOTP) -> None:
        otp.used = True
        await self.session.commit()

    async def delete_expired(self, now: datetime) -> int:
        """Remove every code past its expiry, used or not"""
        result = await self.session.execute(delete(UserOTP).where(UserOTP.expires_at < now))
        await self.session.commit()
        return result.rowcount or 0
