from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser, get_current_user
from docspace.core.db import get_document_db
from docspace.domains.favorites.schemas import FavoriteCheckResponse, FavoriteResponse
from docspace.domains.favorites.services import FavoriteService
from docspace.domains.identity.schemas import MessageResponse
from docspace.domains.workspaces.schemas import WorkspaceResponse

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=List[WorkspaceResponse])
async def list_favorites(
    db: AsyncSession = Depends(get_document_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await FavoriteService(db).list_favorites(current_user)


@router.post("/{workspace_id}", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    workspace_id: str,
    db: AsyncSession = Depends(get_document_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await FavoriteService(db).add(workspace_id, current_user)


@router.delete("/{workspace_id}", response_model=MessageResponse)
async def remove_favorite(
    workspace_id: str,
    db: AsyncSession = Depends(get_document_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    await FavoriteService(db).remove(workspace_id, current_user)
    return MessageResponse(message="Workspace removed from favorites")


@router.get("/{workspace_id}/check", response_model=FavoriteCheckResponse)
async def check_favorite(
    workspace_id: str,
    db: AsyncSession = Depends(get_document_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    is_favorited = await FavoriteService(db).is_favorited(workspace_id, current_user)
    return FavoriteCheckResponse(is_favorited=is_favorited)
