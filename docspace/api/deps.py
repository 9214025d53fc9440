from typing import List, Optional

from fastapi import Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from docspace.core.email import EmailSender
from docspace.core.locks import KeyedLock
from docspace.domains.documents.schemas import DocumentGrantList, IncomingFile, UploadMetadata
from docspace.storage import FileStorage


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def get_locks(request: Request) -> KeyedLock:
    return request.app.state.locks


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


async def read_incoming(file: Optional[UploadFile], limit: int) -> Optional[IncomingFile]:
    """Read at most one byte past the limit so oversized bodies are detectable"""
    if file is None:
        return None
    try:
        data = await file.read(limit + 1)
    finally:
        await file.close()
    return IncomingFile(file_name=file.filename or "", content_type=file.content_type, data=data)


def _split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def parse_upload_metadata(
    name: Optional[str], tags: Optional[str], permissions: Optional[str]
) -> UploadMetadata:
    """Validate the optional multipart form fields of an upload"""
    try:
        grants = DocumentGrantList.validate_json(permissions) if permissions else None
    except ValidationError as e:
        raise RequestValidationError(_with_prefix(e, ("body", "permissions")))
    try:
        return UploadMetadata(name=name, tags=_split_tags(tags), permissions=grants)
    except ValidationError as e:
        raise RequestValidationError(_with_prefix(e, ("body",)))


def _with_prefix(error: ValidationError, prefix: tuple) -> list:
    return [{**err, "loc": (*prefix, *err.get("loc", ()))} for err in error.errors()]
