"""Tests for the trigger gate."""

import itertools

import pytest

from incoming_sync.sync.collaborators import LocalOnboardingStore, LocalPreferenceStore
from incoming_sync.sync.gate import TriggerGate

SUPPORTED = {"0x1", "0x5"}


def make_gate(enabled=True, onboarded=True):
    preferences = LocalPreferenceStore("0x0101", show_incoming_transactions=enabled)
    onboarding = LocalOnboardingStore(onboarded)
    return TriggerGate(preferences, onboarding, SUPPORTED), preferences, onboarding


@pytest.mark.parametrize(
    "enabled,onboarded,chain_id",
    list(itertools.product([True, False], [True, False], ["0x5", "0x539"])),
)
def test_all_conditions_required(enabled, onboarded, chain_id):
    gate, _, _ = make_gate(enabled, onboarded)
    expected = enabled and onboarded and chain_id in SUPPORTED
    assert gate.can_sync(chain_id) is expected


def test_rejection_reasons():
    gate, preferences, onboarding = make_gate(enabled=False, onboarded=False)
    assert gate.rejection_reason("0x5") == TriggerGate.FEATURE_DISABLED

    preferences.set_show_incoming_transactions(True)
    assert gate.rejection_reason("0x5") == TriggerGate.ONBOARDING_INCOMPLETE

    onboarding.completed_onboarding = True
    assert gate.rejection_reason("0x539") == TriggerGate.UNSUPPORTED_CHAIN
    assert gate.rejection_reason("0x5") is None


def test_inputs_are_read_on_every_call():
    gate, preferences, _ = make_gate()
    assert gate.can_sync("0x1")

    preferences.set_show_incoming_transactions(False)
    assert not gate.can_sync("0x1")

    preferences.set_show_incoming_transactions(True)
    assert gate.can_sync("0x1")
