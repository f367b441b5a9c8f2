"""Tests for trigger plumbing: coalescing channel and first-notification skip."""

import asyncio

import pytest

from incoming_sync.sync.triggers import (
    Trigger,
    TriggerChannel,
    TriggerSource,
    parse_block_number,
    skip_first,
)


class TestTrigger:
    def test_newer_source_wins(self):
        pending = Trigger(TriggerSource.NEW_BLOCK, 10)
        merged = pending.coalesce(Trigger(TriggerSource.NEW_BLOCK, 11))
        assert merged == Trigger(TriggerSource.NEW_BLOCK, 11)

    def test_block_number_is_kept_when_newer_has_none(self):
        pending = Trigger(TriggerSource.NEW_BLOCK, 10)
        merged = pending.coalesce(Trigger(TriggerSource.CHAIN_CHANGED))
        assert merged == Trigger(TriggerSource.CHAIN_CHANGED, 10)

    def test_block_number_kept_on_same_chain(self):
        pending = Trigger(TriggerSource.NEW_BLOCK, 10, chain_id="0x1")
        merged = pending.coalesce(Trigger(TriggerSource.ADDRESS_CHANGED))
        assert merged == Trigger(TriggerSource.ADDRESS_CHANGED, 10, chain_id="0x1")

    def test_block_number_dropped_on_chain_change(self):
        pending = Trigger(TriggerSource.NEW_BLOCK, 19_000_002, chain_id="0x1")
        merged = pending.coalesce(Trigger(TriggerSource.CHAIN_CHANGED, chain_id="0x5"))
        assert merged == Trigger(TriggerSource.CHAIN_CHANGED, chain_id="0x5")
        assert merged.block_for("0x5") is None

    def test_block_for_other_chain_is_none(self):
        trigger = Trigger(TriggerSource.NEW_BLOCK, 10, chain_id="0x1")
        assert trigger.block_for("0x1") == 10
        assert trigger.block_for("0x5") is None
        assert Trigger(TriggerSource.NEW_BLOCK, 10).block_for("0x5") == 10


class TestTriggerChannel:
    @pytest.mark.asyncio
    async def test_handles_published_trigger(self):
        handled = []

        async def handler(trigger):
            handled.append(trigger)

        channel = TriggerChannel(handler)
        channel.publish(Trigger(TriggerSource.MANUAL))
        await channel.join()

        assert handled == [Trigger(TriggerSource.MANUAL)]
        assert not channel.busy

    @pytest.mark.asyncio
    async def test_triggers_during_a_cycle_are_coalesced(self):
        handled = []
        release = asyncio.Event()

        async def handler(trigger):
            handled.append(trigger)
            await release.wait()

        channel = TriggerChannel(handler)
        channel.publish(Trigger(TriggerSource.NEW_BLOCK, 1))
        await asyncio.sleep(0)

        # Three triggers arrive while the first is being handled
        channel.publish(Trigger(TriggerSource.NEW_BLOCK, 2))
        channel.publish(Trigger(TriggerSource.ADDRESS_CHANGED))
        channel.publish(Trigger(TriggerSource.NEW_BLOCK, 3))
        assert channel.pending == Trigger(TriggerSource.NEW_BLOCK, 3)

        release.set()
        await channel.join()

        assert handled == [
            Trigger(TriggerSource.NEW_BLOCK, 1),
            Trigger(TriggerSource.NEW_BLOCK, 3),
        ]
        assert channel.published == 4
        assert channel.coalesced == 2

    @pytest.mark.asyncio
    async def test_handler_failure_does_not_stop_channel(self):
        handled = []

        async def handler(trigger):
            handled.append(trigger)
            if trigger.source == TriggerSource.MANUAL:
                raise RuntimeError("boom")

        channel = TriggerChannel(handler)
        channel.publish(Trigger(TriggerSource.MANUAL))
        await channel.join()
        channel.publish(Trigger(TriggerSource.NEW_BLOCK, 5))
        await channel.join()

        assert len(handled) == 2


def test_skip_first_drops_only_the_first_notification():
    seen = []
    callback = skip_first(seen.append)

    callback("a")
    callback("b")
    callback("c")

    assert seen == ["b", "c"]


@pytest.mark.parametrize("value,expected", [(10, 10), ("10", 10), ("0xa", 10), ("0XA", 10)])
def test_parse_block_number(value, expected):
    assert parse_block_number(value) == expected
