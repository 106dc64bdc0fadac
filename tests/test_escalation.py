"""Tests for the escalation state machine."""

import pytest

from answer_bridge.channels.conversation import ConversationStore, ThreadState
from answer_bridge.channels.escalation import EscalationPolicy


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def policy():
    return EscalationPolicy()


class TestHandoffText:
    """Test the support handoff block."""

    def test_default_text(self, policy):
        assert policy.handoff_text() == (
            "\n\nIf you want, I can connect you to our support team. 🙂\n"
            "Contact link: https://grest.in/pages/contact-us"
        )

    def test_upset_tone_has_no_emoji(self, policy):
        text = policy.handoff_text("upset")
        assert "🙂" not in text
        assert text.startswith("\n\nIf you want, I can connect you to our support team.\n")

    def test_phone_and_email_included(self):
        policy = EscalationPolicy(support_phone="+91 99999 00000", support_email="help@grest.in")
        text = policy.handoff_text()
        assert "\nPhone: +91 99999 00000\nEmail: help@grest.in\nContact link:" in text


class TestEscalation:
    """Test fallback counting and one-shot escalation."""

    def test_third_fallback_escalates_once(self, store, policy):
        results = [policy.apply(store, "T1", True) for _ in range(4)]
        assert results[0] is None
        assert results[1] is None
        assert results[2] is not None
        assert results[3] is None
        assert store.get("T1").state == ThreadState.ESCALATED

    def test_non_fallback_resets_counter(self, store, policy):
        sequence = [True, True, False, True, True]
        results = [policy.apply(store, "T1", fallback) for fallback in sequence]
        assert results == [None] * 5
        assert store.get("T1").fallback_count == 2

        # Third consecutive fallback after the reset escalates
        assert policy.apply(store, "T1", True) is not None
        assert store.get("T1").state == ThreadState.ESCALATED

    def test_non_fallback_does_not_unescalate(self, store, policy):
        for _ in range(3):
            policy.apply(store, "T1", True)
        policy.apply(store, "T1", False)
        assert store.get("T1").escalated is True
        for _ in range(3):
            assert policy.apply(store, "T1", True) is None

    def test_threads_are_independent(self, store, policy):
        policy.apply(store, "T1", True)
        policy.apply(store, "T1", True)
        assert policy.apply(store, "T2", True) is None
        assert policy.apply(store, "T1", True) is not None

    def test_tone_passed_to_handoff(self, store, policy):
        policy.apply(store, "T1", True)
        policy.apply(store, "T1", True)
        text = policy.apply(store, "T1", True, tone="upset")
        assert "🙂" not in text
