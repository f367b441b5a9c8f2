"""Unit of Work pattern for managing database transactions."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incoming_sync.db import base as db_base
from incoming_sync.db.models import IncomingTransactionRecord, SyncCursor
from incoming_sync.db.repositories import CursorRepository, IncomingTransactionRepository


class UnitOfWork:
    """
    Single entry point for repository operations sharing one session.

    Usage:
        async with UnitOfWork() as uow:
            await uow.transactions.upsert(tx)
            await uow.cursors.set_cursor("0x1", 1000)
            await uow.commit()
    """

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        """
        Args:
            session: Optional existing session (useful for testing)
            session_factory: Factory used when no session is given;
                defaults to the application's session factory
        """
        self._session = session
        self._owned_session = session is None
        self._session_factory = session_factory

        # Repositories (initialized in __aenter__)
        self.transactions: IncomingTransactionRepository = None  # type: ignore
        self.cursors: CursorRepository = None  # type: ignore

    async def __aenter__(self):
        if self._owned_session:
            factory = self._session_factory or db_base.AsyncSessionLocal
            self._session = factory()

        assert self._session is not None, "Session must be initialized"
        self.transactions = IncomingTransactionRepository(
            IncomingTransactionRecord, self._session
        )
        self.cursors = CursorRepository(SyncCursor, self._session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()
        elif self._owned_session:
            await self.commit()

        if self._owned_session and self._session:
            await self._session.close()

    async def commit(self):
        if self._session:
            await self._session.commit()

    async def rollback(self):
        if self._session:
            await self._session.rollback()
