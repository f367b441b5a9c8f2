"""
Persistence for the engine state.

A cycle's result is visible to readers only after `commit` returns; a
failed commit leaves the previously persisted state untouched.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from incoming_sync.core.errors import StateStoreError
from incoming_sync.db.unit_of_work import UnitOfWork
from incoming_sync.sync.state import EngineState

logger = structlog.get_logger(__name__)


class StateStore(ABC):
    @abstractmethod
    async def load(self) -> Optional[EngineState]:
        """Return the persisted state, or None if nothing was ever persisted."""
        pass

    @abstractmethod
    async def commit(self, state: EngineState, touched_hashes: Iterable[str]) -> None:
        """
        Persist a new state.

        Args:
            state: The full post-cycle state
            touched_hashes: Hashes written by the cycle; stores may persist
                only these rows plus the cursors
        """
        pass


class MemoryStateStore(StateStore):
    """Keeps the persisted shape in a dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Optional[Dict[str, Any]] = initial
        self.commit_count = 0

    async def load(self) -> Optional[EngineState]:
        if self._data is None:
            return None
        return EngineState.from_persisted(self._data)

    async def commit(self, state: EngineState, touched_hashes: Iterable[str]) -> None:
        self._data = state.to_persisted()
        self.commit_count += 1

    def snapshot(self) -> Optional[Dict[str, Any]]:
        return self._data


class SqlStateStore(StateStore):
    """Stores transactions and cursors through the unit of work."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory

    async def load(self) -> Optional[EngineState]:
        try:
            async with UnitOfWork(session_factory=self.session_factory) as uow:
                cursors = await uow.cursors.get_all_cursors()
                rows = await uow.transactions.get_all()
        except SQLAlchemyError as e:
            logger.error("state_store.load_failed", error=str(e))
            raise StateStoreError(f"Failed to load state: {e}") from e

        if not cursors and not rows:
            return None

        transactions = {row.hash: row.to_domain() for row in rows}
        logger.debug(
            "state_store.loaded", transactions=len(transactions), cursors=len(cursors)
        )
        return EngineState(transactions=transactions, cursors=cursors)

    async def commit(self, state: EngineState, touched_hashes: Iterable[str]) -> None:
        touched = [state.transactions[h] for h in touched_hashes if h in state.transactions]
        try:
            async with UnitOfWork(session_factory=self.session_factory) as uow:
                created, updated = await uow.transactions.upsert_many(touched)
                await uow.cursors.set_cursors(state.cursors)
        except SQLAlchemyError as e:
            logger.error("state_store.commit_failed", error=str(e))
            raise StateStoreError(f"Failed to commit state: {e}") from e

        logger.debug("state_store.committed", created=created, updated=updated)
