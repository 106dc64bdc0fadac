"""
Conversation state for Slack threads.

Tracks, per thread, the last answer sent (forwarded to the answer API so it
can interpret short acknowledgements like "ok" or "thanks") together with
the fallback counter and escalation flag. Also remembers the last active
thread per (channel, user) so that a follow-up mention posted outside the
thread still joins the running conversation.

Key Features:
- Thread identity resolution with a 10 minute freshness window
- TTL and size-bounded eviction (state is in-memory only)
- Lock-guarded read-modify-write for counters and freshness checks
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Configuration
FRESHNESS_WINDOW_MS = 10 * 60 * 1000
DEFAULT_TTL_SECONDS = 24 * 3600
DEFAULT_MAX_THREADS = 5000


class ThreadState(str, Enum):
    """Escalation state of a thread."""

    NORMAL = "normal"
    ESCALATED = "escalated"


@dataclass
class ThreadContext:
    """State kept for one Slack thread."""

    thread_id: str
    last_answer: str = ""
    fallback_count: int = 0
    escalated: bool = False
    updated_at: float = field(default_factory=time.time)

    @property
    def state(self) -> ThreadState:
        return ThreadState.ESCALATED if self.escalated else ThreadState.NORMAL


@dataclass
class LastThread:
    """Most recent thread a user was answered in, per channel."""

    thread_id: str
    updated_at_ms: int


class ConversationStore:
    """
    In-memory store for thread contexts and last-thread lookups.

    All public methods are synchronous and hold an internal lock, so each
    call is atomic whether it runs on the event loop or from a worker thread.
    Nothing here awaits, which keeps the lock out of the network path.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_threads: int = DEFAULT_MAX_THREADS,
        freshness_ms: int = FRESHNESS_WINDOW_MS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            ttl_seconds: Idle time after which a thread context is evicted
            max_threads: Maximum thread contexts kept before oldest are evicted
            freshness_ms: Window in which a last-thread entry may be reused
            clock: Time source in seconds (injectable for tests)
        """
        self._ttl_seconds = ttl_seconds
        self._max_threads = max_threads
        self._freshness_ms = freshness_ms
        self._clock = clock
        self._threads: dict[str, ThreadContext] = {}
        self._last_thread: dict[tuple[str, str], LastThread] = {}
        self._lock = threading.RLock()

    def now_ms(self) -> int:
        """Current time in milliseconds from the store clock."""
        return int(self._clock() * 1000)

    def __len__(self) -> int:
        return len(self._threads)

    def _evict_expired_entries(self) -> None:
        """Evict idle and overflow entries (called within lock)."""
        now = self._clock()
        cutoff = now - self._ttl_seconds
        expired = [k for k, v in self._threads.items() if v.updated_at < cutoff]
        for key in expired:
            del self._threads[key]

        stale_ms = int(cutoff * 1000)
        for key in [k for k, v in self._last_thread.items() if v.updated_at_ms < stale_ms]:
            del self._last_thread[key]

        if len(self._threads) > self._max_threads:
            # Trim to 90% so eviction does not run on every insert
            ordered = sorted(self._threads.items(), key=lambda item: item[1].updated_at)
            to_remove = len(self._threads) - int(self._max_threads * 0.9)
            for key, _ in ordered[:to_remove]:
                del self._threads[key]
            logger.debug("Evicted oldest thread contexts", removed=to_remove)

    def resolve_thread_id(
        self,
        channel: str,
        user: str,
        thread_ts: str | None,
        message_ts: str,
        now_ms: int | None = None,
    ) -> str:
        """
        Decide which thread an incoming mention belongs to.

        Args:
            channel: Slack channel ID
            user: Slack user ID
            thread_ts: Parent thread ts if the mention was posted in a thread
            message_ts: ts of the mention itself
            now_ms: Current time in ms (defaults to the store clock)

        Returns:
            The explicit thread, a fresh last-active thread for this
            (channel, user), or the mention's own ts as a new thread anchor
        """
        if thread_ts:
            return thread_ts

        now_ms = self.now_ms() if now_ms is None else now_ms
        with self._lock:
            last = self._last_thread.get((channel, user))
            if last and last.thread_id and now_ms - last.updated_at_ms < self._freshness_ms:
                logger.debug("Reusing recent thread", channel=channel, user=user, thread_id=last.thread_id)
                return last.thread_id
        return message_ts

    def get(self, thread_id: str) -> ThreadContext | None:
        """Return the context for a thread if one exists."""
        with self._lock:
            return self._threads.get(thread_id)

    def last_answer(self, thread_id: str) -> str:
        """Last answer sent in a thread, or an empty string."""
        with self._lock:
            context = self._threads.get(thread_id)
            return context.last_answer if context else ""

    def _get_or_create(self, thread_id: str) -> ThreadContext:
        context = self._threads.get(thread_id)
        if context is None:
            self._evict_expired_entries()
            context = ThreadContext(thread_id=thread_id)
            self._threads[thread_id] = context
        context.updated_at = self._clock()
        return context

    def update(self, thread_id: str, mutate: Callable[[ThreadContext], T]) -> T:
        """
        Apply `mutate` to a thread context atomically.

        The context is created if missing. Used by the escalation policy so
        that counter increments and the escalated flag change together.

        Returns:
            Whatever `mutate` returns
        """
        with self._lock:
            return mutate(self._get_or_create(thread_id))

    def record_answer(
        self,
        thread_id: str,
        channel: str,
        user: str,
        answer: str,
        now_ms: int | None = None,
    ) -> None:
        """
        Remember an answer for a thread and mark it as the user's active one.

        Empty answers are not stored.
        """
        if not answer:
            return
        now_ms = self.now_ms() if now_ms is None else now_ms
        with self._lock:
            context = self._get_or_create(thread_id)
            context.last_answer = answer
            self._last_thread[(channel, user)] = LastThread(thread_id=thread_id, updated_at_ms=now_ms)
