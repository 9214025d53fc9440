from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker


class Database:
    """Async engine plus session factory for one store"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, future=True, echo=echo)
        self.session_factory = sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self, metadata: MetaData) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()


# FastAPI dependencies: one session per request per store
async def get_credential_db(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in request.app.state.credential_db.session():
        yield session


async def get_document_db(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in request.app.state.document_db.session():
        yield session
