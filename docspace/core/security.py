import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from docspace.core.config import Settings
from docspace.core.errors import AuthenticationError

REQUIRED_CLAIMS = ("national_id", "email")


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def _peppered(password: str, settings: Settings) -> str:
    """HMAC-SHA256 keyed by the pepper; 44 base64 chars stay under bcrypt's 72-byte input"""
    digest = hmac.new(
        settings.password_pepper.encode("utf-8"), password.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def get_password_hash(password: str, settings: Settings) -> str:
    """Hash a password together with the server pepper"""
    return _password_context(settings.bcrypt_rounds).hash(_peppered(password, settings))


def verify_password(plain_password: str, hashed_password: str, settings: Settings) -> bool:
    return _password_context(settings.bcrypt_rounds).verify(
        _peppered(plain_password, settings), hashed_password
    )


def create_access_token(
    data: Dict[str, Any], settings: Settings, expires_delta: Optional[timedelta] = None
) -> str:
    """Sign a JWT access token carrying the given claims"""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.access_token_expire_hours)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Check signature and expiry; return the claims"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise AuthenticationError("Authentication invalid")

    if any(not payload.get(claim) for claim in REQUIRED_CLAIMS):
        raise AuthenticationError("Authentication invalid")
    return payload


def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]
