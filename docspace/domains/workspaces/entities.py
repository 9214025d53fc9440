from enum import Enum
from typing import Dict, Iterable, List, Optional


class WorkspaceRole(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


GRANTABLE_ROLES = (WorkspaceRole.EDITOR, WorkspaceRole.VIEWER)


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


class WorkspaceAccess:
    """Resolves a caller's role on one workspace.

    The owner is matched by user id or by email; everybody else gets the role
    named for their email in the grant list, or no role at all.
    """

    def __init__(self, owner_id: str, owner_email: str, grants: Iterable[Dict[str, str]] = ()):
        self.owner_id = owner_id
        self.owner_email = owner_email
        self.grants = list(grants)

    @classmethod
    def of(cls, workspace) -> "WorkspaceAccess":
        return cls(workspace.user_id, workspace.user_email, workspace.permissions or [])

    def is_owner_email(self, email: str) -> bool:
        return _same_email(email, self.owner_email)

    def grant_for(self, email: str) -> Optional[Dict[str, str]]:
        for grant in self.grants:
            if _same_email(grant.get("user_email"), email):
                return grant
        return None

    def role_of(self, user_id: Optional[str], email: Optional[str]) -> Optional[WorkspaceRole]:
        if (user_id and user_id == self.owner_id) or _same_email(email, self.owner_email):
            return WorkspaceRole.OWNER

        grant = self.grant_for(email) if email else None
        if grant is None:
            return None
        try:
            return WorkspaceRole(grant["permission"])
        except ValueError:
            return None

    def can_view(self, user_id: str, email: str, is_public: bool = False) -> bool:
        return is_public or self.role_of(user_id, email) is not None

    def can_edit(self, user_id: str, email: str) -> bool:
        """Owner or editor: may share and add/remove documents"""
        return self.role_of(user_id, email) in (WorkspaceRole.OWNER, WorkspaceRole.EDITOR)

    def is_owner(self, user_id: str, email: str) -> bool:
        return self.role_of(user_id, email) == WorkspaceRole.OWNER

    def can_revoke(self, user_id: str, email: str, revoked_role: WorkspaceRole) -> bool:
        """Editors may revoke viewers; only the owner may revoke editors"""
        if revoked_role == WorkspaceRole.EDITOR:
            return self.is_owner(user_id, email)
        return self.can_edit(user_id, email)

    def with_grant(self, email: str, role: WorkspaceRole) -> List[Dict[str, str]]:
        return [*self.grants, {"user_email": email.lower(), "permission": role.value}]

    def without_grant(self, email: str) -> List[Dict[str, str]]:
        return [grant for grant in self.grants if not _same_email(grant.get("user_email"), email)]
