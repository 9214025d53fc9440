import base64
import logging
from typing import AsyncIterator, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from docspace.core.auth import CurrentUser
from docspace.core.config import Settings
from docspace.core.errors import (
    BadRequestError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
)
from docspace.core.locks import KeyedLock
from docspace.db.base import new_id
from docspace.db.models.document import Document
from docspace.db.models.workspace import Workspace
from docspace.db.repositories.document_repository import DocumentRepository
from docspace.db.repositories.workspace_repository import WorkspaceRepository
from docspace.domains.documents.entities import (
    DocumentPermission,
    bump_version,
    can_write,
    check_sort_field,
    initial_history,
    is_streamable_media,
    resolve_mime_type,
)
from docspace.domains.documents.schemas import (
    DocumentPreviewResponse,
    DocumentQuery,
    DocumentUpdate,
    IncomingFile,
    UploadMetadata,
)
from docspace.domains.workspaces.entities import WorkspaceAccess
from docspace.storage import FileStorage, make_object_key

logger = logging.getLogger(__name__)


class DocumentService:
    """Lifecycle of uploaded documents: upload, listing, versions, trash, download"""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        storage: FileStorage,
        locks: Optional[KeyedLock] = None,
    ):
        self.session = session
        self.settings = settings
        self.storage = storage
        self.locks = locks if locks is not None else KeyedLock()
        self.document_repository = DocumentRepository(session)
        self.workspace_repository = WorkspaceRepository(session)

    def _check_file(self, incoming: Optional[IncomingFile]) -> IncomingFile:
        if incoming is None or not incoming.file_name or not incoming.data:
            raise BadRequestError("No file uploaded")
        if len(incoming.data) > self.settings.max_upload_size:
            raise PayloadTooLargeError(self.settings.max_upload_size)
        return incoming

    async def _discard_object(self, key: str) -> None:
        """Best-effort removal of an object whose row was never written"""
        try:
            await self.storage.delete(key)
        except Exception:
            logger.exception("Could not remove orphaned object %s", key)

    async def _get_live(self, document_id: str) -> Document:
        document = await self.document_repository.get(document_id)
        if document is None or document.deleted:
            raise NotFoundError("Document")
        return document

    async def _get_owned(self, document_id: str, user: CurrentUser) -> Document:
        """Document by id, any state, restricted to its owner"""
        document = await self.document_repository.get(document_id)
        if document is None:
            raise NotFoundError("Document")
        if document.user_id != user.national_id:
            raise PermissionDeniedError("Only the document owner can do this")
        return document

    async def upload(
        self,
        workspace_id: Optional[str],
        incoming: Optional[IncomingFile],
        metadata: UploadMetadata,
        user: CurrentUser,
    ) -> Document:
        """Store a file body and attach a new document to the workspace"""
        incoming = self._check_file(incoming)
        if not workspace_id:
            raise BadRequestError("workspace_id is required")

        workspace = await self.workspace_repository.get(workspace_id)
        if workspace is None or workspace.deleted:
            raise BadRequestError("Workspace does not exist or has been deleted")
        if not WorkspaceAccess.of(workspace).can_edit(user.national_id, user.email):
            raise PermissionDeniedError("Only the owner or an editor can upload documents")

        mime_type = resolve_mime_type(incoming.content_type, incoming.file_name)
        key = make_object_key(incoming.file_name)
        await self.storage.save(key, incoming.data, mime_type)

        if metadata.permissions is not None:
            grants = [grant.model_dump(mode="json") for grant in metadata.permissions]
        else:
            grants = [{"user_email": user.email, "permission": DocumentPermission.ADMIN.value}]

        document = Document(
            id=new_id(),
            name=metadata.name or incoming.file_name,
            workspace_id=workspace_id,
            user_id=user.national_id,
            user_email=user.email,
            file_path=key,
            original_file_name=incoming.file_name,
            file_size=len(incoming.data),
            file_type=mime_type,
            tags=metadata.tags,
            version=1,
            version_history=initial_history(user.email),
            permissions=grants,
        )

        try:
            async with self.locks(workspace_id):
                await self.workspace_repository.reload(workspace)
                if workspace.deleted:
                    raise BadRequestError("Workspace does not exist or has been deleted")
                self.document_repository.add(document)
                workspace.document_ids = [*(workspace.document_ids or []), document.id]
                workspace.touch()
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            await self._discard_object(key)
            raise

        logger.info("Uploaded document %s into workspace %s", document.id, workspace_id)
        return document

    async def get_document(self, document_id: str, user: CurrentUser) -> Document:
        document = await self._get_live(document_id)
        if document.user_id != user.national_id:
            raise PermissionDeniedError("You do not have access to this document")
        return document

    async def list_documents(self, user: CurrentUser) -> List[Document]:
        return await self.document_repository.list_by_owner(user.national_id)

    async def filter_documents(self, user: CurrentUser, query: DocumentQuery) -> List[Document]:
        sort_by = check_sort_field(query.sort_by or "created_at")
        return await self.document_repository.list_by_owner(
            user.national_id,
            name=query.name,
            sort_by=sort_by,
            descending=query.descending,
        )

    async def list_recycle_bin(self, user: CurrentUser) -> List[Document]:
        return await self.document_repository.list_by_owner(user.national_id, deleted=True)

    async def update_document(
        self, document_id: str, data: DocumentUpdate, user: CurrentUser
    ) -> Document:
        """Rename or retag; the version is left alone"""
        document = await self._get_live(document_id)
        if document.user_id != user.national_id:
            raise PermissionDeniedError("Only the document owner can update it")

        if data.name is not None:
            document.name = data.name
        if data.tags is not None:
            document.tags = list(data.tags)
        document.touch()
        await self.session.commit()
        return document

    async def add_version(
        self, document_id: str, incoming: Optional[IncomingFile], user: CurrentUser
    ) -> Document:
        """Replace the stored body and append to the version log"""
        incoming = self._check_file(incoming)
        document = await self._get_live(document_id)
        if not can_write(document, user.national_id, user.email):
            raise PermissionDeniedError("You cannot upload new versions of this document")

        mime_type = resolve_mime_type(incoming.content_type, incoming.file_name)
        key = make_object_key(incoming.file_name)
        await self.storage.save(key, incoming.data, mime_type)

        previous_key = document.file_path
        document.file_path = key
        document.original_file_name = incoming.file_name
        document.file_size = len(incoming.data)
        document.file_type = mime_type
        bump_version(document, user.email)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            await self._discard_object(key)
            raise

        await self._discard_object(previous_key)
        logger.info("Document %s is now at version %d", document.id, document.version)
        return document

    async def soft_delete(self, document_id: str, user: CurrentUser) -> Document:
        document = await self._get_owned(document_id, user)
        if document.deleted:
            raise BadRequestError("Document is already in the recycle bin")
        document.deleted = True
        document.touch()
        await self.session.commit()
        logger.info("Moved document %s to the recycle bin", document.id)
        return document

    async def restore(self, document_id: str, user: CurrentUser) -> Document:
        document = await self._get_owned(document_id, user)
        if not document.deleted:
            raise BadRequestError("Document is not in the recycle bin")
        document.deleted = False
        document.touch()
        await self.session.commit()
        logger.info("Restored document %s", document.id)
        return document

    async def _destroy(self, document: Document) -> None:
        """Delete the object, then the row and its workspace reference"""
        await self.storage.delete(document.file_path)

        async with self.locks(document.workspace_id):
            workspace = await self.workspace_repository.get(document.workspace_id)
            if workspace is not None:
                await self.workspace_repository.reload(workspace)
                workspace.document_ids = [
                    doc_id for doc_id in (workspace.document_ids or []) if doc_id != document.id
                ]
                workspace.touch()
            await self.document_repository.delete(document)
            await self.session.commit()
        logger.info("Permanently deleted document %s", document.id)

    async def permanent_delete(self, document_id: str, user: CurrentUser) -> None:
        document = await self._get_owned(document_id, user)
        if not document.deleted:
            raise BadRequestError("Document must be in the recycle bin before permanent deletion")
        await self._destroy(document)

    async def remove_from_workspace(
        self, workspace_id: str, document_id: str, user: CurrentUser
    ) -> None:
        workspace = await self._get_workspace(workspace_id)
        if not WorkspaceAccess.of(workspace).can_edit(user.national_id, user.email):
            raise PermissionDeniedError("Only the owner or an editor can remove documents")

        document = await self.document_repository.get(document_id)
        if document is None or document_id not in (workspace.document_ids or []):
            raise NotFoundError("Document")
        await self._destroy(document)

    async def _get_workspace(self, workspace_id: str) -> Workspace:
        workspace = await self.workspace_repository.get(workspace_id)
        if workspace is None or workspace.deleted:
            raise NotFoundError("Workspace")
        return workspace

    async def _require_body(self, document: Document) -> None:
        if not await self.storage.exists(document.file_path):
            raise NotFoundError("File")

    async def open_download(
        self, document_id: str, user: CurrentUser
    ) -> Tuple[Document, AsyncIterator[bytes]]:
        """Document plus a chunk stream of its body"""
        document = await self._get_live(document_id)
        if document.user_id != user.national_id:
            workspace = await self.workspace_repository.get(document.workspace_id)
            role = WorkspaceAccess.of(workspace).role_of(user.national_id, user.email) if workspace else None
            if role is None:
                raise PermissionDeniedError("You do not have access to this document")

        await self._require_body(document)
        return document, self.storage.iter_chunks(document.file_path)

    async def preview(self, document_id: str, user: CurrentUser):
        """Chunk stream for audio/video, base64 JSON payload for the rest"""
        document = await self.get_document(document_id, user)
        await self._require_body(document)

        if is_streamable_media(document.file_type):
            return document, self.storage.iter_chunks(document.file_path)

        data = await self.storage.read(document.file_path)
        return document, DocumentPreviewResponse(
            id=document.id,
            file_name=document.original_file_name,
            mime_type=document.file_type,
            content=base64.b64encode(data).decode("ascii"),
        )
