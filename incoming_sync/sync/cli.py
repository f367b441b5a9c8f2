"""
Incoming transaction sync CLI commands.

    python -m incoming_sync.sync.cli sync     Run one sync cycle
    python -m incoming_sync.sync.cli status   Show coordinator status
    python -m incoming_sync.sync.cli state    Dump the persisted state as JSON
    python -m incoming_sync.sync.cli run      Sync on every new block until Ctrl+C
"""

import asyncio
import json
import sys

import structlog

from incoming_sync.core.config import get_settings
from incoming_sync.core.logging import configure_logging
from incoming_sync.db.init import create_tables
from incoming_sync.sync.service import build_coordinator

logger = structlog.get_logger(__name__)


def print_status(status: dict):
    """Pretty print coordinator status."""
    print("\n=== Incoming Transaction Sync ===\n")
    print(f"Source: {status['source']}")
    print(f"Chain: {status['chain_id']}")
    print(f"Address: {status['selected_address'] or 'Not set'}")
    print(f"Listening: {status['listening']}")
    print(f"Gate: {status['gate_rejection'] or 'open'}")
    print(f"Cursor: {status['cursor'] if status['cursor'] is not None else 'unsynchronized'}")
    print(f"Transactions: {status['transaction_count']}")

    result = status["last_result"]
    if result:
        print("\n--- Last Cycle ---")
        print(f"Outcome: {result['outcome']}")
        print(f"Trigger: {result['trigger']}")
        print(f"From block: {result['from_block']}")
        print(f"Fetched: {result['fetched']}")
        print(f"New: {result['new']}")
        print(f"Updated: {result['updated']}")
        if result["reason"]:
            print(f"Reason: {result['reason']}")
        if result["error"]:
            print(f"Error: {result['error']}")
    print()


async def sync_command():
    """Run a single sync cycle."""
    await create_tables()
    coordinator = build_coordinator()
    try:
        await coordinator.restore()
        result = await coordinator.run_cycle()
        print_status(coordinator.get_status())
        return 1 if result.error else 0
    finally:
        await coordinator.shutdown()


async def status_command():
    await create_tables()
    coordinator = build_coordinator()
    try:
        await coordinator.restore()
        print_status(coordinator.get_status())
        return 0
    finally:
        await coordinator.shutdown()


async def state_command():
    await create_tables()
    coordinator = build_coordinator()
    try:
        state = await coordinator.restore()
        print(json.dumps(state.to_persisted(), indent=2, sort_keys=True))
        return 0
    finally:
        await coordinator.shutdown()


async def run_command():
    """Run the coordinator until interrupted."""
    settings = get_settings()
    print("Starting incoming transaction sync...")
    print(f"Chain: {settings.CHAIN_ID}")
    print(f"Block poll interval: {settings.BLOCK_POLL_INTERVAL_SECONDS}s")
    print("Press Ctrl+C to stop\n")

    await create_tables()
    coordinator = build_coordinator(settings)
    await coordinator.restore()
    coordinator.start()
    try:
        while True:
            await asyncio.sleep(1)
    finally:
        await coordinator.shutdown()
        print("Sync stopped.")


def main():
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m incoming_sync.sync.cli <command>")
        print("\nCommands:")
        print("  sync     Run one sync cycle for the configured chain and address")
        print("  status   Show current sync status")
        print("  state    Print the persisted state as JSON")
        print("  run      Sync continuously on new blocks")
        return 1

    configure_logging(get_settings().ENV)
    command = sys.argv[1]
    commands = {
        "sync": sync_command,
        "status": status_command,
        "state": state_command,
        "run": run_command,
    }

    if command not in commands:
        print(f"Unknown command: {command}")
        print("Available commands: " + ", ".join(commands))
        return 1

    try:
        return asyncio.run(commands[command]())
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
