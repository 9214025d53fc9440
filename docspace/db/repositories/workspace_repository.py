from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.workspace import Favorite, Workspace, WorkspacePermission


class WorkspaceRepository:
    """Queries over the workspaces table.

    Writes are staged on the session; the calling service commits, so one
    request's changes to several tables land in a single transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, workspace: Workspace) -> None:
        self.session.add(workspace)

    async def delete(self, workspace: Workspace) -> None:
        await self.session.delete(workspace)

    async def get(self, workspace_id: str) -> Optional[Workspace]:
        """Workspace by id, soft-deleted or not"""
        result = await self.session.execute(select(Workspace).where(Workspace.id == workspace_id))
        return result.scalar_one_or_none()

    async def get_active(self, workspace_id: str) -> Optional[Workspace]:
        result = await self.session.execute(
            select(Workspace).where(Workspace.id == workspace_id, Workspace.deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def reload(self, workspace: Workspace) -> Workspace:
        """Re-read a row so list columns reflect the latest committed state"""
        await self.session.refresh(workspace)
        return workspace

    async def list_by_owner(self, user_id: str, deleted: bool = False) -> List[Workspace]:
        result = await self.session.execute(
            select(Workspace)
            .where(Workspace.user_id == user_id, Workspace.deleted.is_(deleted))
            .order_by(Workspace.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_recent(self, user_id: str, limit: int) -> List[Workspace]:
        result = await self.session.execute(
            select(Workspace)
            .where(Workspace.user_id == user_id, Workspace.deleted.is_(False))
            .order_by(Workspace.updated_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_public_ranked(self) -> List[Tuple[Workspace, int]]:
        """Public workspaces, most favorited first, newest first on ties"""
        favorite_count = func.count(Favorite.id).label("favorite_count")
        result = await self.session.execute(
            select(Workspace, favorite_count)
            .outerjoin(Favorite, Favorite.workspace_id == Workspace.id)
            .where(Workspace.is_public.is_(True), Workspace.deleted.is_(False))
            .group_by(Workspace.id)
            .order_by(favorite_count.desc(), Workspace.created_at.desc())
        )
        return [(workspace, count) for workspace, count in result.all()]

    async def list_by_ids(self, workspace_ids: Sequence[str]) -> List[Workspace]:
        if not workspace_ids:
            return []
        result = await self.session.execute(
            select(Workspace)
            .where(Workspace.id.in_(list(workspace_ids)), Workspace.deleted.is_(False))
            .order_by(Workspace.updated_at.desc())
        )
        return list(result.scalars().all())


class WorkspacePermissionRepository:
    """Normalized grant rows used for the shared-with-me lookup"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, workspace_id: str, user_email: str, permission: str) -> WorkspacePermission:
        row = WorkspacePermission(
            workspace_id=workspace_id, user_email=user_email, permission=permission
        )
        self.session.add(row)
        return row

    async def get(self, workspace_id: str, user_email: str) -> Optional[WorkspacePermission]:
        result = await self.session.execute(
            select(WorkspacePermission).where(
                WorkspacePermission.workspace_id == workspace_id,
                WorkspacePermission.user_email == user_email,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_email(self, user_email: str) -> List[WorkspacePermission]:
        result = await self.session.execute(
            select(WorkspacePermission).where(WorkspacePermission.user_email == user_email)
        )
        return list(result.scalars().all())

    async def remove(self, workspace_id: str, user_email: str) -> None:
        await self.session.execute(
            delete(WorkspacePermission).where(
                WorkspacePermission.workspace_id == workspace_id,
                WorkspacePermission.user_email == user_email,
            )
        )

    async def remove_for_workspace(self, workspace_id: str) -> None:
        await self.session.execute(
            delete(WorkspacePermission).where(WorkspacePermission.workspace_id == workspace_id)
        )
