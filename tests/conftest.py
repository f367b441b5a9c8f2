import os
import sys
from pathlib import Path
from types import SimpleNamespace

# Force test database URL before any project imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

# Ensure project root is on sys.path so `import incoming_sync` works from any cwd.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from incoming_sync.db import models  # noqa: E402,F401
from incoming_sync.db.base import Base  # noqa: E402
from incoming_sync.sync.clients.static_client import StaticExplorerClient  # noqa: E402
from incoming_sync.sync.collaborators import (  # noqa: E402
    LocalBlockTracker,
    LocalNetworkController,
    LocalOnboardingStore,
    LocalPreferenceStore,
)
from incoming_sync.sync.config import SyncConfig  # noqa: E402
from incoming_sync.sync.coordinator import SyncCoordinator  # noqa: E402
from incoming_sync.sync.store import MemoryStateStore  # noqa: E402

SELECTED_ADDRESS = "0x0101"
GOERLI = "0x5"


def etherscan_tx(
    hash="0xfake",
    block_number="10",
    to_address=SELECTED_ADDRESS,
    use_eip1559=False,
    **overrides,
):
    """A txlist entry the way Etherscan returns it."""
    record = {
        "blockNumber": block_number,
        "from": "0xfake",
        "gas": "0",
        "hash": hash,
        "isError": "0",
        "nonce": "100",
        "timeStamp": "16000000000000",
        "to": to_address,
        "value": "0",
    }
    if use_eip1559:
        record["maxFeePerGas"] = "10"
        record["maxPriorityFeePerGas"] = "1"
    else:
        record["gasPrice"] = "0"
    record.update(overrides)
    return record


@pytest.fixture
def make_tx():
    return etherscan_tx


@pytest.fixture
def make_engine():
    """
    Build a coordinator wired to in-memory collaborators.

    Returns a namespace with the coordinator and every collaborator so tests
    can drive triggers and inspect calls.
    """
    created = []

    def factory(
        transactions=None,
        chain_id=GOERLI,
        address=SELECTED_ADDRESS,
        feature_enabled=True,
        onboarded=True,
        current_block=None,
        initial_state=None,
        store=None,
        config=None,
        latency_ms=0,
    ):
        client = StaticExplorerClient(transactions=transactions or {}, latency_ms=latency_ms)
        network = LocalNetworkController(chain_id)
        block_tracker = LocalBlockTracker(current_block=current_block, network=network)
        preferences = LocalPreferenceStore(
            selected_address=address, show_incoming_transactions=feature_enabled
        )
        onboarding = LocalOnboardingStore(onboarded)
        store = store if store is not None else MemoryStateStore()
        reported = []

        coordinator = SyncCoordinator(
            client=client,
            block_tracker=block_tracker,
            network=network,
            preferences=preferences,
            onboarding=onboarding,
            store=store,
            config=config or SyncConfig(),
            initial_state=initial_state,
            error_reporter=reported.append,
        )
        engine = SimpleNamespace(
            coordinator=coordinator,
            client=client,
            block_tracker=block_tracker,
            network=network,
            preferences=preferences,
            onboarding=onboarding,
            store=store,
            reported=reported,
        )
        created.append(engine)
        return engine

    yield factory

    for engine in created:
        engine.coordinator.stop()


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database with all tables for one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
