from docspace.db.repositories.user_repository import UserOTPRepository, UserRepository
from docspace.db.repositories.workspace_repository import (
    WorkspacePermissionRepository,
    WorkspaceRepository,
)
from docspace.db.repositories.favorite_repository import FavoriteRepository
from docspace.db.repositories.document_repository import DocumentRepository

__all__ = [
    "UserRepository",
    "UserOTPRepository",
    "WorkspaceRepository",
    "WorkspacePermissionRepository",
    "FavoriteRepository",
    "DocumentRepository",
]
