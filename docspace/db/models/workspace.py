from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from docspace.db.base import DocumentStoreBase, TimestampMixin, new_id, utcnow


class Workspace(TimestampMixin, DocumentStoreBase):
    __tablename__ = "workspaces"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(String(64), index=True, nullable=False)
    user_email = Column(String(255), nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, index=True, nullable=False)
    # Ordered document ids; documents stay addressable on their own
    document_ids = Column("documents", JSON, default=list, nullable=False)
    # [{"user_email": ..., "permission": "editor" | "viewer"}]
    permissions = Column(JSON, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"Workspace(id={self.id}, name={self.name}, deleted={self.deleted})"


class Favorite(DocumentStoreBase):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "workspace_id", name="uq_favorite_user_workspace"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), index=True, nullable=False)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), index=True, nullable=False)
    favorited_at = Column(DateTime, default=utcnow, nullable=False)


class WorkspacePermission(DocumentStoreBase):
    """Normalized copy of a workspace grant, for "shared with me" lookups"""

    __tablename__ = "workspace_permissions"
    __table_args__ = (UniqueConstraint("user_email", "workspace_id", name="uq_permission_email_workspace"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String(255), index=True, nullable=False)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), index=True, nullable=False)
    permission = Column(String(16), nullable=False)
