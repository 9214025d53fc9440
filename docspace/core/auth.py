from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request

from docspace.core.config import Settings
from docspace.core.errors import AuthenticationError
from docspace.core.security import extract_token_from_header, verify_token


@dataclass(frozen=True)
class CurrentUser:
    """Claim set attached to an authenticated request"""

    national_id: str
    email: str
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "CurrentUser":
        return cls(
            national_id=str(claims["national_id"]),
            email=str(claims["email"]).lower(),
            first_name=claims.get("firstName", ""),
            last_name=claims.get("lastName", ""),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    token = extract_token_from_header(authorization)
    if not token:
        raise AuthenticationError("Authentication invalid")

    return CurrentUser.from_claims(verify_token(token, settings))
