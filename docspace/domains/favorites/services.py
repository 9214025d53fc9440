import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser
from docspace.core.errors import BadRequestError, NotFoundError
from docspace.db.models.workspace import Favorite, Workspace
from docspace.db.repositories.favorite_repository import FavoriteRepository
from docspace.db.repositories.workspace_repository import WorkspaceRepository
from docspace.domains.workspaces.entities import WorkspaceAccess

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.favorite_repository = FavoriteRepository(session)
        self.workspace_repository = WorkspaceRepository(session)

    async def add(self, workspace_id: str, user: CurrentUser) -> Favorite:
        if await self.workspace_repository.get_active(workspace_id) is None:
            raise NotFoundError("Workspace")
        if await self.favorite_repository.get(user.national_id, workspace_id) is not None:
            raise BadRequestError("Workspace is already in favorites")

        favorite = self.favorite_repository.add(user.national_id, workspace_id)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise BadRequestError("Workspace is already in favorites")
        logger.info("%s favorited workspace %s", user.email, workspace_id)
        return favorite

    async def remove(self, workspace_id: str, user: CurrentUser) -> None:
        favorite = await self.favorite_repository.get(user.national_id, workspace_id)
        if favorite is None:
            raise NotFoundError("Favorite")
        await self.favorite_repository.delete(favorite)
        await self.session.commit()

    async def list_favorites(self, user: CurrentUser) -> List[Workspace]:
        """Favorited workspaces the caller can still view"""
        workspaces = await self.favorite_repository.list_workspaces(user.national_id)
        return [
            workspace
            for workspace in workspaces
            if WorkspaceAccess.of(workspace).can_view(user.national_id, user.email, workspace.is_public)
        ]

    async def is_favorited(self, workspace_id: str, user: CurrentUser) -> bool:
        return await self.favorite_repository.get(user.national_id, workspace_id) is not None
