from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class UserRegister(BaseModel):
    national_id: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("national_id", "first_name", "last_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class AuthResponse(BaseModel):
    """Token plus the profile it was issued for"""

    token: str
    email: str
    national_id: str
    first_name: str
    last_name: str


class UserResponse(BaseModel):
    national_id: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OTPGenerateRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)


class OTPVerifyRequest(BaseModel):
    email: EmailStr
    # any shape is accepted here; a code that does not match is "Invalid OTP"
    otp: Union[str, int]

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("otp")
    @classmethod
    def otp_as_text(cls, v: Union[str, int]) -> str:
        return str(v).strip()


class MessageResponse(BaseModel):
    message: str
