from docspace.domains.documents.entities import DocumentPermission, SORTABLE_FIELDS
from docspace.domains.documents.schemas import (
    DocumentPreviewResponse, DocumentQuery, DocumentResponse, DocumentUpdate,
    IncomingFile, UploadMetadata,
)
from docspace.domains.documents.services import DocumentService

__all__ = [
    "DocumentPermission", "SORTABLE_FIELDS",
    "DocumentPreviewResponse", "DocumentQuery", "DocumentResponse", "DocumentUpdate",
    "IncomingFile", "UploadMetadata",
    "DocumentService",
]
