import mimetypes
from enum import Enum
from typing import Dict, List, Optional

from docspace.core.errors import BadRequestError
from docspace.db.base import utcnow

SORTABLE_FIELDS = ("name", "created_at", "updated_at", "file_size", "file_type", "version")

DEFAULT_MIME_TYPE = "application/octet-stream"


class DocumentPermission(str, Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


def version_entry(version: int, updated_by: str) -> Dict[str, object]:
    return {"version": version, "updated_at": utcnow().isoformat(), "updated_by": updated_by}


def initial_history(updated_by: str) -> List[Dict[str, object]]:
    return [version_entry(1, updated_by)]


def bump_version(document, updated_by: str) -> None:
    """Increment the version and append the matching history entry"""
    document.version += 1
    document.version_history = [
        *(document.version_history or []),
        version_entry(document.version, updated_by),
    ]
    document.touch()


def grant_for(document, email: str) -> Optional[DocumentPermission]:
    for grant in document.permissions or []:
        if (grant.get("user_email") or "").lower() == email.lower():
            try:
                return DocumentPermission(grant.get("permission"))
            except ValueError:
                return None
    return None


def can_write(document, user_id: str, email: str) -> bool:
    """Owner, or a write/admin grant on the document"""
    if document.user_id == user_id:
        return True
    return grant_for(document, email) in (DocumentPermission.WRITE, DocumentPermission.ADMIN)


def resolve_mime_type(content_type: Optional[str], file_name: str) -> str:
    """Multipart content type, else a guess from the extension"""
    if content_type and content_type != DEFAULT_MIME_TYPE:
        return content_type
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or content_type or DEFAULT_MIME_TYPE


def is_streamable_media(mime_type: str) -> bool:
    return mime_type.startswith("audio/") or mime_type.startswith("video/")


def check_sort_field(sort_by: str) -> str:
    if sort_by not in SORTABLE_FIELDS:
        raise BadRequestError(
            f"Invalid sort field '{sort_by}'. Allowed: {', '.join(SORTABLE_FIELDS)}"
        )
    return sort_by


def sort_documents(documents: List, sort_by: Optional[str], descending: bool = False) -> List:
    """Sorted copy; without a field the incoming order is kept"""
    if not sort_by:
        return list(reversed(documents)) if descending else list(documents)
    check_sort_field(sort_by)

    def key(document):
        value = getattr(document, sort_by)
        return value.lower() if isinstance(value, str) else value

    return sorted(documents, key=key, reverse=descending)
