"""
Human handoff after repeated fallback answers.

Per thread: NORMAL -> ESCALATED, once. Each fallback answer increments the
thread's fallback counter; when it reaches the threshold in NORMAL state the
answer is replaced by a support handoff block and the thread becomes
ESCALATED. An ESCALATED thread never produces a second handoff. A
non-fallback answer resets the counter but does not un-escalate.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from answer_bridge.channels.conversation import ConversationStore, ThreadContext
from answer_bridge.site import SUPPORT_CONTACT_URL

logger = structlog.get_logger(__name__)

ESCALATION_THRESHOLD = 3


@dataclass(frozen=True)
class EscalationPolicy:
    """Decides when a thread is handed off to human support."""

    support_phone: str = ""
    support_email: str = ""
    contact_url: str = SUPPORT_CONTACT_URL
    threshold: int = ESCALATION_THRESHOLD

    def handoff_text(self, tone: str = "neutral") -> str:
        """Build the support handoff block; no emoji for upset users."""
        emoji = "" if tone == "upset" else " 🙂"
        lines = [
            f"\n\nIf you want, I can connect you to our support team.{emoji}",
            f"Phone: {self.support_phone}" if self.support_phone else "",
            f"Email: {self.support_email}" if self.support_email else "",
            f"Contact link: {self.contact_url}",
        ]
        return "\n".join(line for line in lines if line)

    def observe(self, context: ThreadContext, fallback: bool, tone: str = "neutral") -> str | None:
        """
        Advance the state machine for one answer.

        Args:
            context: Thread context to mutate
            fallback: Whether this answer is a fallback
            tone: User tone reported by the ribbon

        Returns:
            Handoff text if this answer triggers escalation, else None
        """
        if not fallback:
            context.fallback_count = 0
            return None

        context.fallback_count += 1
        if context.fallback_count >= self.threshold and not context.escalated:
            context.escalated = True
            logger.info(
                "Escalating thread to human support",
                thread_id=context.thread_id,
                fallback_count=context.fallback_count,
                tone=tone,
            )
            return self.handoff_text(tone)
        return None

    def apply(
        self,
        store: ConversationStore,
        thread_id: str,
        fallback: bool,
        tone: str = "neutral",
    ) -> str | None:
        """Run `observe` atomically against the thread stored in `store`."""
        return store.update(thread_id, lambda context: self.observe(context, fallback, tone))
