from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from docspace.domains.documents.schemas import DocumentResponse, GrantResponse


class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    is_public: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    is_public: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v


class ShareRequest(BaseModel):
    email: EmailStr
    permission: Literal["editor", "viewer"]

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class WorkspaceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    user_id: str
    user_email: str
    is_public: bool
    deleted: bool
    document_ids: List[str]
    permissions: List[GrantResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkspaceWithDocuments(WorkspaceResponse):
    documents: List[DocumentResponse] = []


class WorkspaceDetailResponse(WorkspaceWithDocuments):
    role: Optional[str] = None


class PublicWorkspaceResponse(WorkspaceResponse):
    favorite_count: int = 0


class SharedWorkspaceResponse(WorkspaceResponse):
    role: str
