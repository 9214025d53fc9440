from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.api.deps import get_email_sender
from docspace.core.auth import get_settings
from docspace.core.config import Settings
from docspace.core.db import get_credential_db
from docspace.core.email import EmailSender
from docspace.domains.identity.schemas import MessageResponse, OTPGenerateRequest, OTPVerifyRequest
from docspace.domains.identity.services import OTPService

router = APIRouter(prefix="/otp", tags=["otp"])


@router.post("/generate", response_model=MessageResponse)
async def generate_otp(
    data: OTPGenerateRequest,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Email a fresh one-time code; the code itself is never returned"""
    await OTPService(db, settings, email_sender).generate(data.email)
    return MessageResponse(message="OTP sent to email")


@router.post("/verify", response_model=MessageResponse)
async def verify_otp(
    data: OTPVerifyRequest,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
):
    await OTPService(db, settings).verify(data.email, data.otp)
    return MessageResponse(message="OTP verified successfully")
