from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.workspace import Favorite, Workspace


class FavoriteRepository:
    """Queries over the favorites table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, user_id: str, workspace_id: str) -> Favorite:
        favorite = Favorite(user_id=user_id, workspace_id=workspace_id)
        self.session.add(favorite)
        return favorite

    async def get(self, user_id: str, workspace_id: str) -> Optional[Favorite]:
        result = await self.session.execute(
            select(Favorite).where(
                Favorite.user_id == user_id, Favorite.workspace_id == workspace_id
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, favorite: Favorite) -> None:
        await self.session.delete(favorite)

    async def list_workspaces(self, user_id: str) -> List[Workspace]:
        """Favorited workspaces that are not soft-deleted, latest favorite first"""
        result = await self.session.execute(
            select(Workspace)
            .join(Favorite, Favorite.workspace_id == Workspace.id)
            .where(Favorite.user_id == user_id, Workspace.deleted.is_(False))
            .order_by(Favorite.favorited_at.desc())
        )
        return list(result.scalars().all())

    async def remove_for_workspace(self, workspace_id: str) -> None:
        await self.session.execute(delete(Favorite).where(Favorite.workspace_id == workspace_id))
