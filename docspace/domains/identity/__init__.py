from docspace.domains.identity.schemas import (
    AuthResponse, MessageResponse, OTPGenerateRequest, OTPVerifyRequest,
    UserLogin, UserRegister, UserResponse,
)
from docspace.domains.identity.services import IdentityService, OTPService

__all__ = [
    "AuthResponse", "MessageResponse", "OTPGenerateRequest", "OTPVerifyRequest",
    "UserLogin", "UserRegister", "UserResponse",
    "IdentityService", "OTPService",
]
