from sqlalchemy import Boolean, Column, DateTime, Integer, String

from docspace.db.base import CredentialBase, TimestampMixin, utcnow


class User(TimestampMixin, CredentialBase):
    __tablename__ = "users"

    national_id = Column(String(64), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_digest = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"User(national_id={self.national_id}, email={self.email})"


class UserOTP(CredentialBase):
    __tablename__ = "user_otps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    otp_code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"UserOTP(email={self.email}, expires_at={self.expires_at}, used={self.used})"
