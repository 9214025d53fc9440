from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator, model_validator

from docspace.domains.documents.entities import DocumentPermission


@dataclass
class IncomingFile:
    """An uploaded body after the multipart layer has read it"""

    file_name: str
    content_type: Optional[str]
    data: bytes


class DocumentGrant(BaseModel):
    user_email: EmailStr
    permission: DocumentPermission

    @field_validator("user_email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


DocumentGrantList = TypeAdapter(List[DocumentGrant])


class UploadMetadata(BaseModel):
    """Optional form fields sent alongside an upload"""

    name: Optional[str] = Field(None, max_length=255)
    tags: List[str] = Field(default_factory=list)
    permissions: Optional[List[DocumentGrant]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class DocumentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    tags: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v

    @model_validator(mode="after")
    def require_change(self) -> "DocumentUpdate":
        if self.name is None and self.tags is None:
            raise ValueError("Provide a name or tags to update")
        return self


class VersionEntry(BaseModel):
    version: int
    updated_at: str
    updated_by: str


class GrantResponse(BaseModel):
    user_email: str
    permission: str


class DocumentResponse(BaseModel):
    id: str
    name: str
    workspace_id: str
    user_id: str
    user_email: str
    deleted: bool
    original_file_name: str
    file_size: int
    file_type: str
    tags: List[str]
    version: int
    version_history: List[VersionEntry]
    permissions: List[GrantResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentPreviewResponse(BaseModel):
    id: str
    file_name: str
    mime_type: str
    content: str


class DocumentQuery(BaseModel):
    """Listing filters shared by the filter endpoint and workspace detail"""

    name: Optional[str] = None
    sort_by: Optional[str] = None
    order: Literal["asc", "desc"] = "asc"

    @property
    def descending(self) -> bool:
        return self.order == "desc"
