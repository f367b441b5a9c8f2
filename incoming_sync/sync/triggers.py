"""
Trigger plumbing for the sync coordinator.

The three producers (new block, preference change, chain change) and manual
requests all publish into one channel with a single consumer. The channel
keeps at most one pending trigger: anything published while a cycle is in
flight is folded into that slot and handled once the cycle finishes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class TriggerSource(str, Enum):
    NEW_BLOCK = "new_block"
    ADDRESS_CHANGED = "address_changed"
    CHAIN_CHANGED = "chain_changed"
    MANUAL = "manual"


@dataclass(frozen=True)
class Trigger:
    """
    A request for one sync cycle.

    `chain_id` is the chain the trigger was raised on, when known. A block
    number is only meaningful on that chain.
    """

    source: TriggerSource
    block_number: Optional[int] = None
    chain_id: Optional[str] = None

    def block_for(self, chain_id: str) -> Optional[int]:
        """The carried block number, if it belongs to `chain_id`."""
        if self.chain_id is not None and self.chain_id != chain_id:
            return None
        return self.block_number

    def coalesce(self, newer: "Trigger") -> "Trigger":
        """Fold a newer trigger into this pending one; the newer source wins.

        The pending block number survives only while the newer trigger is
        on the same chain.
        """
        if newer.block_number is not None or self.block_number is None:
            return newer
        if newer.chain_id is not None and newer.chain_id != self.chain_id:
            return newer
        return replace(newer, block_number=self.block_number, chain_id=self.chain_id)


TriggerHandler = Callable[[Trigger], Awaitable[Any]]


class TriggerChannel:
    """Single-consumer channel with one coalescing pending slot."""

    def __init__(self, handler: TriggerHandler):
        self._handler = handler
        self._pending: Optional[Trigger] = None
        self._worker: Optional[asyncio.Task] = None
        self.published = 0
        self.coalesced = 0

    @property
    def pending(self) -> Optional[Trigger]:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def publish(self, trigger: Trigger) -> None:
        """Queue a trigger; must be called from the event loop thread."""
        self.published += 1
        if self._pending is not None:
            self.coalesced += 1
            self._pending = self._pending.coalesce(trigger)
            logger.debug("sync.trigger.coalesced", source=trigger.source.value)
        else:
            self._pending = trigger

        if not self.busy:
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def join(self) -> None:
        """Wait until no trigger is pending or being handled."""
        while self.busy:
            await asyncio.shield(self._worker)  # type: ignore[arg-type]

    async def _drain(self) -> None:
        while self._pending is not None:
            trigger, self._pending = self._pending, None
            try:
                await self._handler(trigger)
            except Exception as e:
                logger.error(
                    "sync.trigger.handler_failed",
                    source=trigger.source.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )


def skip_first(callback: Callable[[T], Any]) -> Callable[[T], Any]:
    """Drop the first notification of a change stream.

    The first notification after subscribing is the initial snapshot, not a
    change. Diffing against the last known address would be stricter.
    """
    seen = False

    def wrapper(value: T) -> Any:
        nonlocal seen
        if not seen:
            seen = True
            return None
        return callback(value)

    return wrapper


def parse_block_number(value: Any) -> int:
    """Accept block numbers as ints, decimal strings or 0x-prefixed hex."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text, 10)
