import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser
from docspace.core.errors import (
    BadRequestError,
    NotFoundError,
    PartialCascadeFailureError,
    PermissionDeniedError,
)
from docspace.core.locks import KeyedLock
from docspace.db.base import new_id
from docspace.db.models.document import Document
from docspace.db.models.workspace import Workspace
from docspace.db.repositories.document_repository import DocumentRepository
from docspace.db.repositories.favorite_repository import FavoriteRepository
from docspace.db.repositories.workspace_repository import (
    WorkspacePermissionRepository,
    WorkspaceRepository,
)
from docspace.domains.documents.entities import sort_documents
from docspace.domains.documents.schemas import DocumentQuery
from docspace.domains.workspaces.entities import WorkspaceAccess, WorkspaceRole
from docspace.domains.workspaces.schemas import ShareRequest, WorkspaceCreate, WorkspaceUpdate
from docspace.storage import FileStorage

logger = logging.getLogger(__name__)

RECENT_LIMIT_DEFAULT = 5
RECENT_LIMIT_MAX = 50


class WorkspaceService:
    """Workspace lifecycle, listings and sharing"""

    def __init__(
        self,
        session: AsyncSession,
        storage: Optional[FileStorage] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.session = session
        self.storage = storage
        self.locks = locks if locks is not None else KeyedLock()
        self.workspace_repository = WorkspaceRepository(session)
        self.permission_repository = WorkspacePermissionRepository(session)
        self.document_repository = DocumentRepository(session)
        self.favorite_repository = FavoriteRepository(session)

    async def _get(self, workspace_id: str) -> Workspace:
        workspace = await self.workspace_repository.get(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace")
        return workspace

    async def _get_live(self, workspace_id: str) -> Workspace:
        workspace = await self._get(workspace_id)
        if workspace.deleted:
            raise NotFoundError("Workspace")
        return workspace

    async def _get_owned(self, workspace_id: str, user: CurrentUser) -> Workspace:
        workspace = await self._get(workspace_id)
        if not WorkspaceAccess.of(workspace).is_owner(user.national_id, user.email):
            raise PermissionDeniedError("Only the workspace owner can do this")
        return workspace

    async def documents_of(self, workspace: Workspace) -> List[Document]:
        """Non-deleted documents in workspace list order"""
        return await self.document_repository.list_by_ids(workspace.document_ids or [])

    async def create_workspace(self, data: WorkspaceCreate, user: CurrentUser) -> Workspace:
        workspace = Workspace(
            id=new_id(),
            name=data.name,
            description=data.description,
            user_id=user.national_id,
            user_email=user.email,
            is_public=data.is_public,
            document_ids=[],
            permissions=[],
        )
        self.workspace_repository.add(workspace)
        await self.session.commit()
        logger.info("Created workspace %s for %s", workspace.id, user.email)
        return workspace

    async def list_mine(self, user: CurrentUser) -> List[Tuple[Workspace, List[Document]]]:
        workspaces = await self.workspace_repository.list_by_owner(user.national_id)
        return [(workspace, await self.documents_of(workspace)) for workspace in workspaces]

    async def list_public(self) -> List[Tuple[Workspace, int]]:
        return await self.workspace_repository.list_public_ranked()

    async def list_recent(self, user: CurrentUser, limit: int = RECENT_LIMIT_DEFAULT) -> List[Workspace]:
        limit = max(1, min(limit, RECENT_LIMIT_MAX))
        return await self.workspace_repository.list_recent(user.national_id, limit)

    async def list_deleted(self, user: CurrentUser) -> List[Workspace]:
        return await self.workspace_repository.list_by_owner(user.national_id, deleted=True)

    async def list_shared(self, user: CurrentUser) -> List[Tuple[Workspace, WorkspaceRole]]:
        """Workspaces other people shared with the caller, with the caller's role"""
        rows = await self.permission_repository.list_for_email(user.email)
        workspaces = await self.workspace_repository.list_by_ids([row.workspace_id for row in rows])

        shared = []
        for workspace in workspaces:
            role = WorkspaceAccess.of(workspace).role_of(user.national_id, user.email)
            if role is not None:
                shared.append((workspace, role))
        return shared

    async def get_workspace(
        self, workspace_id: str, user: CurrentUser, query: Optional[DocumentQuery] = None
    ) -> Tuple[Workspace, Optional[WorkspaceRole], List[Document]]:
        """Workspace, the caller's role and its documents (searched and sorted)"""
        query = query or DocumentQuery()
        workspace = await self._get_live(workspace_id)

        access = WorkspaceAccess.of(workspace)
        role = access.role_of(user.national_id, user.email)
        if role is None and not workspace.is_public:
            raise PermissionDeniedError("You do not have access to this workspace")

        documents = await self.document_repository.list_by_ids(
            workspace.document_ids or [], name=query.name
        )
        return workspace, role, sort_documents(documents, query.sort_by, query.descending)

    async def update_workspace(
        self, workspace_id: str, data: WorkspaceUpdate, user: CurrentUser
    ) -> Workspace:
        workspace = await self._get_owned(workspace_id, user)
        if workspace.deleted:
            raise NotFoundError("Workspace")

        # description may be cleared; name and is_public may not
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None or field == "description":
                setattr(workspace, field, value)
        workspace.touch()
        await self.session.commit()
        return workspace

    async def soft_delete(self, workspace_id: str, user: CurrentUser) -> Workspace:
        workspace = await self._get_owned(workspace_id, user)
        if workspace.deleted:
            raise BadRequestError("Workspace is already deleted")
        workspace.deleted = True
        workspace.touch()
        await self.session.commit()
        logger.info("Moved workspace %s to trash", workspace.id)
        return workspace

    async def restore(self, workspace_id: str, user: CurrentUser) -> Workspace:
        workspace = await self._get_owned(workspace_id, user)
        if not workspace.deleted:
            raise BadRequestError("Workspace is not deleted")
        workspace.deleted = False
        workspace.touch()
        await self.session.commit()
        logger.info("Restored workspace %s", workspace.id)
        return workspace

    async def permanent_delete(self, workspace_id: str, user: CurrentUser) -> None:
        """Purge a trashed workspace with its documents, favorites and grants.

        Every file object is attempted. Documents whose object could not be
        removed stay behind together with the workspace row, so the purge can
        be retried, and the failed keys are reported.
        """
        workspace = await self._get_owned(workspace_id, user)
        if not workspace.deleted:
            raise BadRequestError("Workspace must be deleted before permanent deletion")

        documents = await self.document_repository.list_by_workspace(workspace.id)
        failed: List[Document] = []
        for document in documents:
            try:
                await self.storage.delete(document.file_path)
            except Exception:
                logger.exception(
                    "Could not delete object %s of document %s", document.file_path, document.id
                )
                failed.append(document)

        async with self.locks(workspace.id):
            for document in documents:
                if document not in failed:
                    await self.document_repository.delete(document)

            if failed:
                workspace.document_ids = [document.id for document in failed]
                await self.session.commit()
                raise PartialCascadeFailureError(
                    workspace.id, [document.file_path for document in failed]
                )

            await self.session.flush()
            await self.favorite_repository.remove_for_workspace(workspace.id)
            await self.permission_repository.remove_for_workspace(workspace.id)
            await self.workspace_repository.delete(workspace)
            await self.session.commit()
        logger.info("Purged workspace %s and %d document(s)", workspace_id, len(documents))

    async def share(self, workspace_id: str, data: ShareRequest, user: CurrentUser) -> Workspace:
        async with self.locks(workspace_id):
            workspace = await self._get_live(workspace_id)
            await self.workspace_repository.reload(workspace)

            access = WorkspaceAccess.of(workspace)
            if not access.can_edit(user.national_id, user.email):
                raise PermissionDeniedError("Only the owner or an editor can share this workspace")
            if access.is_owner_email(data.email):
                raise BadRequestError("Cannot grant a permission to the workspace owner")
            if access.grant_for(data.email) is not None:
                raise BadRequestError("User already has a permission on this workspace")

            role = WorkspaceRole(data.permission)
            workspace.permissions = access.with_grant(data.email, role)
            workspace.touch()
            self.permission_repository.add(workspace.id, data.email, role.value)
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                raise BadRequestError("User already has a permission on this workspace")

        logger.info("Granted %s on workspace %s to %s", role.value, workspace.id, data.email)
        return workspace

    async def revoke(self, workspace_id: str, email: str, user: CurrentUser) -> Workspace:
        email = email.lower()
        async with self.locks(workspace_id):
            workspace = await self._get_live(workspace_id)
            await self.workspace_repository.reload(workspace)

            access = WorkspaceAccess.of(workspace)
            if not access.can_edit(user.national_id, user.email):
                raise PermissionDeniedError("Only the owner or an editor can revoke access")
            grant = access.grant_for(email)
            if grant is None:
                raise NotFoundError("Permission")
            if not access.can_revoke(user.national_id, user.email, WorkspaceRole(grant["permission"])):
                raise PermissionDeniedError("Only the workspace owner can revoke an editor")

            workspace.permissions = access.without_grant(email)
            workspace.touch()
            await self.permission_repository.remove(workspace.id, email)
            await self.session.commit()

        logger.info("Revoked access to workspace %s for %s", workspace.id, email)
        return workspace
