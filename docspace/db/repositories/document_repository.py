from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.document import Document


class DocumentRepository:
    """Queries over the documents table; writes are committed by the service"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, document: Document) -> None:
        self.session.add(document)

    async def delete(self, document: Document) -> None:
        await self.session.delete(document)

    async def get(self, document_id: str) -> Optional[Document]:
        """Document by id, soft-deleted or not"""
        result = await self.session.execute(select(Document).where(Document.id == document_id))
        return result.scalar_one_or_none()

    async def list_by_owner(
        self,
        user_id: str,
        deleted: bool = False,
        name: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = False,
    ) -> List[Document]:
        stmt = select(Document).where(Document.user_id == user_id, Document.deleted.is_(deleted))
        if name:
            stmt = stmt.where(Document.name.icontains(name, autoescape=True))
        column = getattr(Document, sort_by)
        stmt = stmt.order_by(column.desc() if descending else column.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_ids(
        self,
        document_ids: Sequence[str],
        include_deleted: bool = False,
        name: Optional[str] = None,
    ) -> List[Document]:
        """Documents among the given ids, in the order of ``document_ids``"""
        if not document_ids:
            return []
        stmt = select(Document).where(Document.id.in_(list(document_ids)))
        if not include_deleted:
            stmt = stmt.where(Document.deleted.is_(False))
        if name:
            stmt = stmt.where(Document.name.icontains(name, autoescape=True))
        result = await self.session.execute(stmt)

        position = {document_id: index for index, document_id in enumerate(document_ids)}
        return sorted(result.scalars().all(), key=lambda document: position[document.id])

    async def list_by_workspace(self, workspace_id: str) -> List[Document]:
        """Every document attached to a workspace, soft-deleted ones included"""
        result = await self.session.execute(
            select(Document).where(Document.workspace_id == workspace_id)
        )
        return list(result.scalars().all())
