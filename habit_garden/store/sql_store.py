from __future__ import annotations
import asyncio
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Callable, List, Set

from loguru import logger
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..errors import BatchCommitFailed, StoreUnavailable
from ..models.document import Document
from .base import DocumentMissing, DocumentSnapshot, DocumentStore, WriteBatch, WriteOp, apply_write, split_path

_UNREACHABLE = (OperationalError, InterfaceError, OSError, TimeoutError)


def _dialect(session: AsyncSession) -> str:
    return session.get_bind().dialect.name


class SqlDocumentStore(DocumentStore):
    """
    Document store persisted in the `documents` table.

    Each batch runs in a single transaction, so either every write lands
    or the transaction is rolled back and nothing does.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None):
        super().__init__()
        if session_factory is None:
            from ..db import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self._session_factory = session_factory
        self._write_lock = asyncio.Lock()

    async def get(self, path: str) -> DocumentSnapshot:
        split_path(path)
        try:
            async with self._session_factory() as session:
                row = await session.get(Document, path)
                data = dict(row.data) if row is not None else None
        except _UNREACHABLE as e:
            raise StoreUnavailable(f"Could not read {path}: {e}") from e
        return DocumentSnapshot(path=path, data=data)

    async def list_collection(self, path: str) -> List[DocumentSnapshot]:
        collection = path.strip("/")
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document)
                    .where(Document.collection == collection)
                    .order_by(Document.created_at, Document.path)
                )
                rows = result.scalars().all()
                return [DocumentSnapshot(path=row.path, data=dict(row.data)) for row in rows]
        except _UNREACHABLE as e:
            raise StoreUnavailable(f"Could not list {collection}: {e}") from e

    async def _apply_batch(self, batch: WriteBatch) -> Set[str]:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                # sqlite has no row locks and begins its transaction lazily, so two
                # batches could both read the same document; run them one at a time.
                lock = self._write_lock if _dialect(session) == "sqlite" else nullcontext()
                async with lock:
                    async with session.begin():
                        for op in batch.operations:
                            await self._apply(session, op, now)
        except DocumentMissing as e:
            logger.warning("Batch of {} writes rejected: {}", len(batch), e)
            raise BatchCommitFailed(str(e)) from e
        except _UNREACHABLE as e:
            logger.warning("Store unreachable while committing batch: {}", e)
            raise StoreUnavailable(str(e)) from e
        except SQLAlchemyError as e:
            logger.warning("Batch of {} writes rolled back: {}", len(batch), e)
            raise BatchCommitFailed(str(e)) from e
        return {op.path for op in batch.operations}

    @staticmethod
    async def _apply(session: AsyncSession, op: WriteOp, now: datetime) -> None:
        collection, doc_id = split_path(op.path)
        if op.kind == "set" and _dialect(session) == "postgresql":
            # Make sure the row exists so concurrent first writes to a document
            # queue on the row lock below instead of racing on the primary key.
            await session.execute(
                pg_insert(Document.__table__)
                .values(path=op.path, collection=collection, doc_id=doc_id, data={}, created_at=now, updated_at=now)
                .on_conflict_do_nothing(index_elements=["path"])
            )
        # FOR UPDATE is dropped by dialects without row locks (sqlite)
        result = await session.execute(
            select(Document).where(Document.path == op.path).with_for_update()
        )
        row = result.scalar_one_or_none()
        new_data = apply_write(row.data if row is not None else None, op, now)

        if new_data is None:
            if row is not None:
                await session.delete(row)
        elif row is None:
            session.add(
                Document(
                    path=op.path,
                    collection=collection,
                    doc_id=doc_id,
                    data=new_data,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            row.data = new_data
            row.touch()
            session.add(row)
        await session.flush()
