from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.api.deps import get_locks, get_storage, parse_upload_metadata, read_incoming
from docspace.api.http.documents import get_document_service
from docspace.core.auth import CurrentUser, get_current_user, get_settings
from docspace.core.config import Settings
from docspace.core.db import get_document_db
from docspace.core.locks import KeyedLock
from docspace.domains.documents.schemas import DocumentQuery, DocumentResponse
from docspace.domains.documents.services import DocumentService
from docspace.domains.identity.schemas import MessageResponse
from docspace.domains.workspaces.schemas import (
    PublicWorkspaceResponse,
    SharedWorkspaceResponse,
    ShareRequest,
    WorkspaceCreate,
    WorkspaceDetailResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
    WorkspaceWithDocuments,
)
from docspace.domains.workspaces.services import (
    RECENT_LIMIT_DEFAULT,
    RECENT_LIMIT_MAX,
    WorkspaceService,
)
from docspace.storage import FileStorage

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def get_workspace_service(
    db: AsyncSession = Depends(get_document_db),
    storage: FileStorage = Depends(get_storage),
    locks: KeyedLock = Depends(get_locks),
) -> WorkspaceService:
    return WorkspaceService(db, storage, locks)


def _fields(workspace) -> dict:
    return WorkspaceResponse.model_validate(workspace).model_dump()


def _documents(documents) -> List[DocumentResponse]:
    return [DocumentResponse.model_validate(document) for document in documents]


@router.get("", response_model=List[WorkspaceWithDocuments])
async def list_my_workspaces(
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """The caller's workspaces, each with its documents"""
    return [
        WorkspaceWithDocuments(**_fields(workspace), documents=_documents(documents))
        for workspace, documents in await service.list_mine(current_user)
    ]


@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    data: WorkspaceCreate,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.create_workspace(data, current_user)


@router.get("/public", response_model=List[PublicWorkspaceResponse])
async def list_public_workspaces(
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Public workspaces, most favorited first"""
    return [
        PublicWorkspaceResponse(**_fields(workspace), favorite_count=count)
        for workspace, count in await service.list_public()
    ]


@router.get("/recent", response_model=List[WorkspaceResponse])
async def list_recent_workspaces(
    limit: int = Query(RECENT_LIMIT_DEFAULT, ge=1, le=RECENT_LIMIT_MAX),
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.list_recent(current_user, limit)


@router.get("/deleted", response_model=List[WorkspaceResponse])
async def list_deleted_workspaces(
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.list_deleted(current_user)


@router.get("/shared-workspaces", response_model=List[SharedWorkspaceResponse])
async def list_shared_workspaces(
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return [
        SharedWorkspaceResponse(**_fields(workspace), role=role.value)
        for workspace, role in await service.list_shared(current_user)
    ]


@router.get("/{workspace_id}", response_model=WorkspaceDetailResponse)
async def get_workspace(
    workspace_id: str,
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    order: Literal["asc", "desc"] = Query("asc"),
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Workspace with the caller's role and its documents"""
    query = DocumentQuery(name=search, sort_by=sort_by, order=order)
    workspace, role, documents = await service.get_workspace(workspace_id, current_user, query)
    return WorkspaceDetailResponse(
        **_fields(workspace),
        documents=_documents(documents),
        role=role.value if role else None,
    )


@router.put("/{workspace_id}", response_model=WorkspaceResponse)
async def update_workspace(
    workspace_id: str,
    data: WorkspaceUpdate,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.update_workspace(workspace_id, data, current_user)


@router.delete("/{workspace_id}", response_model=WorkspaceResponse)
async def soft_delete_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.soft_delete(workspace_id, current_user)


@router.put("/{workspace_id}/restore", response_model=WorkspaceResponse)
async def restore_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.restore(workspace_id, current_user)


@router.delete("/{workspace_id}/permanent-delete", response_model=MessageResponse)
async def permanent_delete_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Purge a deleted workspace together with its documents and files"""
    await service.permanent_delete(workspace_id, current_user)
    return MessageResponse(message="Workspace permanently deleted")


@router.post("/{workspace_id}/share", response_model=WorkspaceResponse)
async def share_workspace(
    workspace_id: str,
    data: ShareRequest,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.share(workspace_id, data, current_user)


@router.delete("/{workspace_id}/share/{email}", response_model=WorkspaceResponse)
async def revoke_workspace_access(
    workspace_id: str,
    email: str,
    service: WorkspaceService = Depends(get_workspace_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.revoke(workspace_id, email, current_user)


@router.post(
    "/{workspace_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_workspace_document(
    workspace_id: str,
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    permissions: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    metadata = parse_upload_metadata(name, tags, permissions)
    incoming = await read_incoming(file, settings.max_upload_size)
    return await service.upload(workspace_id, incoming, metadata, current_user)


@router.delete("/{workspace_id}/documents/{document_id}", response_model=MessageResponse)
async def remove_workspace_document(
    workspace_id: str,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    await service.remove_from_workspace(workspace_id, document_id, current_user)
    return MessageResponse(message="Document removed from workspace")
