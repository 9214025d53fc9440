from docspace.db.models.user import User, UserOTP
from docspace.db.models.workspace import Favorite, Workspace, WorkspacePermission
from docspace.db.models.document import Document

__all__ = [
    "User",
    "UserOTP",
    "Workspace",
    "Favorite",
    "WorkspacePermission",
    "Document",
]
