from docspace.domains.workspaces.entities import WorkspaceAccess, WorkspaceRole
from docspace.domains.workspaces.schemas import (
    PublicWorkspaceResponse, SharedWorkspaceResponse, ShareRequest, WorkspaceCreate,
    WorkspaceDetailResponse, WorkspaceResponse, WorkspaceUpdate, WorkspaceWithDocuments,
)
from docspace.domains.workspaces.services import WorkspaceService

__all__ = [
    "WorkspaceAccess", "WorkspaceRole",
    "PublicWorkspaceResponse", "SharedWorkspaceResponse", "ShareRequest", "WorkspaceCreate",
    "WorkspaceDetailResponse", "WorkspaceResponse", "WorkspaceUpdate", "WorkspaceWithDocuments",
    "WorkspaceService",
]
