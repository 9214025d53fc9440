import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser
from docspace.core.config import Settings
from docspace.core.email import EmailSender
from docspace.core.errors import (
    InvalidPasswordError,
    NoUsersError,
    OTPInvalidError,
    PermissionDeniedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from docspace.core.security import create_access_token, get_password_hash, verify_password
from docspace.db.base import utcnow
from docspace.db.models.user import User
from docspace.db.repositories.user_repository import UserOTPRepository, UserRepository
from docspace.domains.identity.entities import generate_otp_code, token_claims
from docspace.domains.identity.schemas import AuthResponse, UserLogin, UserRegister

logger = logging.getLogger(__name__)


class IdentityService:
    """Registration, login and account lookup"""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.user_repository = UserRepository(session)

    def _auth_response(self, user: User) -> AuthResponse:
        token = create_access_token(token_claims(user), self.settings)
        return AuthResponse(
            token=token,
            email=user.email,
            national_id=user.national_id,
            first_name=user.first_name,
            last_name=user.last_name,
        )

    async def register_user(self, data: UserRegister) -> AuthResponse:
        if await self.user_repository.email_exists(data.email):
            raise UserAlreadyExistsError("Email already exists")
        if await self.user_repository.national_id_exists(data.national_id):
            raise UserAlreadyExistsError("National Id already exists")

        user = User(
            national_id=data.national_id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password_digest=get_password_hash(data.password, self.settings),
        )
        user = await self.user_repository.create(user)
        logger.info("Registered user %s", user.email)
        return self._auth_response(user)

    async def login_user(self, data: UserLogin) -> AuthResponse:
        user = await self.user_repository.get_by_email(data.email)
        if user is None:
            raise UserNotFoundError(data.email)
        if not verify_password(data.password, user.password_digest, self.settings):
            raise InvalidPasswordError()
        return self._auth_response(user)

    async def list_users(self) -> List[User]:
        users = await self.user_repository.get_all()
        if not users:
            raise NoUsersError()
        return users

    async def get_user(self, email: str) -> User:
        user = await self.user_repository.get_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        return user

    async def delete_user(self, email: str, current_user: CurrentUser) -> User:
        """Users may only delete their own account"""
        if email.lower() != current_user.email:
            raise PermissionDeniedError("You can only delete your own account")
        user = await self.get_user(email)
        await self.user_repository.delete(user)
        logger.info("Deleted user %s", user.email)
        return user


class OTPService:
    """One-time codes for email verification"""

    def __init__(self, session: AsyncSession, settings: Settings, email_sender: Optional[EmailSender] = None):
        self.session = session
        self.settings = settings
        self.email_sender = email_sender
        self.otp_repository = UserOTPRepository(session)
        self.user_repository = UserRepository(session)

    async def generate(self, email: str) -> None:
        """Issue a fresh code for a not-yet-registered email and mail it"""
        if await self.user_repository.email_exists(email):
            raise UserAlreadyExistsError("Email already exists")

        code = generate_otp_code()
        expires_at = utcnow() + timedelta(minutes=self.settings.otp_ttl_minutes)
        await self.otp_repository.upsert(email, code, expires_at)

        if self.email_sender is not None:
            await self.email_sender.send(
                email,
                "Your OTP Code",
                f"Your OTP code is {code}. "
                f"It is valid for {self.settings.otp_ttl_minutes} minutes.",
            )
        logger.info("Issued OTP for %s", email)

    async def verify(self, email: str, otp_code: str) -> None:
        """Consume a code; wrong, used and expired codes all fail the same way"""
        otp = await self.otp_repository.get_active(email, otp_code, utcnow())
        if otp is None:
            raise OTPInvalidError()
        await self.otp_repository.mark_used(otp)

    async def purge_expired(self) -> int:
        removed = await self.otp_repository.delete_expired(utcnow())
        logger.info("Purged %d expired OTP code(s)", removed)
        return removed
