"""Predicate deciding whether a sync cycle may run."""

from typing import Iterable, Optional

from incoming_sync.sync.collaborators import OnboardingStore, PreferenceStore


class TriggerGate:
    """
    Combines the feature flag, onboarding status and chain support.

    Inputs are read on every call; any of them can change independently
    of the triggers that consult the gate.
    """

    FEATURE_DISABLED = "feature_disabled"
    ONBOARDING_INCOMPLETE = "onboarding_incomplete"
    UNSUPPORTED_CHAIN = "unsupported_chain"

    def __init__(
        self,
        preferences: PreferenceStore,
        onboarding: OnboardingStore,
        supported_chain_ids: Iterable[str],
    ):
        self.preferences = preferences
        self.onboarding = onboarding
        self.supported_chain_ids = frozenset(supported_chain_ids)

    def rejection_reason(self, chain_id: str) -> Optional[str]:
        """Return why a cycle on `chain_id` is blocked, or None if it may run."""
        if not self.preferences.is_feature_enabled():
            return self.FEATURE_DISABLED
        if not self.onboarding.is_onboarding_complete():
            return self.ONBOARDING_INCOMPLETE
        if chain_id not in self.supported_chain_ids:
            return self.UNSUPPORTED_CHAIN
        return None

    def can_sync(self, chain_id: str) -> bool:
        return self.rejection_reason(chain_id) is None
