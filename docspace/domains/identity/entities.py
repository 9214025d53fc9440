import secrets
from typing import Any, Dict

OTP_LENGTH = 6


def generate_otp_code() -> str:
    """Cryptographically random numeric code, zero padded"""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def token_claims(user) -> Dict[str, Any]:
    """Claim set signed into access tokens"""
    return {
        "national_id": user.national_id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
    }
