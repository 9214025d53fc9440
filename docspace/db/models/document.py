from sqlalchemy import JSON, BigInteger, Boolean, Column, ForeignKey, Integer, String

from docspace.db.base import DocumentStoreBase, TimestampMixin, new_id


class Document(TimestampMixin, DocumentStoreBase):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    workspace_id = Column(String(36), ForeignKey("workspaces.id"), index=True, nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    user_email = Column(String(255), nullable=False)
    deleted = Column(Boolean, default=False, index=True, nullable=False)

    # Local path or object-store key, depending on the storage backend
    file_path = Column(String(512), nullable=False)
    original_file_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    file_type = Column(String(255), nullable=False)
    tags = Column(JSON, default=list, nullable=False)

    version = Column(Integer, default=1, nullable=False)
    # [{"version": 1, "updated_at": iso8601, "updated_by": email}]
    version_history = Column(JSON, default=list, nullable=False)
    # [{"user_email": ..., "permission": "read" | "write" | "admin"}]
    permissions = Column(JSON, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"Document(id={self.id}, name={self.name}, version={self.version})"
