from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser, get_current_user, get_settings
from docspace.core.config import Settings
from docspace.core.db import get_credential_db
from docspace.domains.identity.schemas import AuthResponse, UserLogin, UserRegister, UserResponse
from docspace.domains.identity.services import IdentityService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
):
    """Create an account and return an access token for it"""
    return await IdentityService(db, settings).register_user(data)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
):
    return await IdentityService(db, settings).login_user(data)


@router.get("", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await IdentityService(db, settings).list_users()


@router.get("/{email}", response_model=UserResponse)
async def get_user(
    email: str,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await IdentityService(db, settings).get_user(email)


@router.delete("/{email}", response_model=UserResponse)
async def delete_user(
    email: str,
    db: AsyncSession = Depends(get_credential_db),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Delete the caller's own account"""
    return await IdentityService(db, settings).delete_user(email, current_user)
