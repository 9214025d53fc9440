from typing import List, Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.api.deps import get_locks, get_storage, parse_upload_metadata, read_incoming
from docspace.core.auth import CurrentUser, get_current_user, get_settings
from docspace.core.config import Settings
from docspace.core.db import get_document_db
from docspace.core.locks import KeyedLock
from docspace.domains.documents.schemas import (
    DocumentPreviewResponse,
    DocumentQuery,
    DocumentResponse,
    DocumentUpdate,
)
from docspace.domains.documents.services import DocumentService
from docspace.domains.identity.schemas import MessageResponse
from docspace.storage import FileStorage

router = APIRouter(prefix="/documents", tags=["documents"])


def get_document_service(
    db: AsyncSession = Depends(get_document_db),
    settings: Settings = Depends(get_settings),
    storage: FileStorage = Depends(get_storage),
    locks: KeyedLock = Depends(get_locks),
) -> DocumentService:
    return DocumentService(db, settings, storage, locks)


def content_disposition(kind: str, file_name: str) -> str:
    return f"{kind}; filename*=UTF-8''{quote(file_name)}"


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """The caller's documents outside the recycle bin"""
    return await service.list_documents(current_user)


@router.get("/filter", response_model=List[DocumentResponse])
async def filter_documents(
    name: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    order: Literal["asc", "desc"] = Query("asc"),
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    query = DocumentQuery(name=name, sort_by=sort_by, order=order)
    return await service.filter_documents(current_user, query)


@router.get("/recycle-bin", response_model=List[DocumentResponse])
async def recycle_bin(
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.list_recycle_bin(current_user)


@router.post("/upload", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    workspace_id: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    permissions: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Upload a file into a workspace the caller owns or edits"""
    metadata = parse_upload_metadata(name, tags, permissions)
    incoming = await read_incoming(file, settings.max_upload_size)
    return await service.upload(workspace_id, incoming, metadata, current_user)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.get_document(document_id, current_user)


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    data: DocumentUpdate,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Rename or retag a document"""
    return await service.update_document(document_id, data, current_user)


@router.post("/{document_id}/versions", response_model=DocumentResponse)
async def add_version(
    document_id: str,
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    incoming = await read_incoming(file, settings.max_upload_size)
    return await service.add_version(document_id, incoming, current_user)


@router.delete("/{document_id}", response_model=DocumentResponse)
async def soft_delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Move a document to the recycle bin"""
    return await service.soft_delete(document_id, current_user)


@router.patch("/{document_id}/restore", response_model=DocumentResponse)
async def restore_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.restore(document_id, current_user)


@router.delete("/{document_id}/delete", response_model=MessageResponse)
async def permanent_delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    await service.permanent_delete(document_id, current_user)
    return MessageResponse(message="Document permanently deleted")


@router.get("/{document_id}/preview", response_model=DocumentPreviewResponse)
async def preview_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Inline stream for audio/video, base64 JSON for everything else"""
    document, payload = await service.preview(document_id, current_user)
    if isinstance(payload, DocumentPreviewResponse):
        return payload
    return StreamingResponse(
        payload,
        media_type=document.file_type,
        headers={"Content-Disposition": content_disposition("inline", document.original_file_name)},
    )


@router.get("/{document_id}/download")
async def download_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    document, chunks = await service.open_download(document_id, current_user)
    return StreamingResponse(
        chunks,
        media_type=document.file_type,
        headers={"Content-Disposition": content_disposition("attachment", document.original_file_name)},
    )
