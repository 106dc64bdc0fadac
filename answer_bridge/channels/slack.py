"""
Slack integration for the answer bridge.

Handles @-mentions in channels and threads: each mention becomes one call to
the answer API, scoped by the retrieval allowlist and carrying the thread's
previous answer. The reply is shaped (citations, product link, escalation
handoff, ribbon) and delivered by editing a "Thinking…" placeholder or by
replying in the thread.

Also wires the admin shortcuts (URL ingest, iPhone specs sync).

Features:
- Socket Mode via AsyncApp + AsyncSocketModeHandler
- Redelivered event deduplication
- Per-thread conversation memory with follow-up thread reuse
- Escalation to human support after repeated fallback answers
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any

import structlog

from answer_bridge.allowlist import resolve_allowlist
from answer_bridge.backend.client import AnswerAPIClient
from answer_bridge.backend.errors import BackendError
from answer_bridge.backend.models import AnswerRequest
from answer_bridge.channels.admin import AdminWorkflows
from answer_bridge.channels.conversation import ConversationStore
from answer_bridge.channels.escalation import EscalationPolicy
from answer_bridge.channels.slack_api import safe_client_call
from answer_bridge.config import Settings
from answer_bridge.formatting.response import NOT_FOUND_TEXT, is_fallback, shape_response
from answer_bridge.formatting.ribbon import parse_ribbon
from answer_bridge.jobs.poller import JobRegistry
from answer_bridge.observability.tracing import get_tracer, truncate

logger = structlog.get_logger(__name__)

THINKING_TEXT = "Thinking…"
ERROR_TEXT = "Error handling that message."

_MENTION_PATTERN = re.compile(r"<@[^>]+>")


class SlackHandler:
    """
    Slack event handler for the answer bridge.

    Runs in async Socket Mode. State lives in memory and is lost on restart.
    """

    def __init__(
        self,
        settings: Settings,
        backend: AnswerAPIClient | None = None,
        store: ConversationStore | None = None,
        policy: EscalationPolicy | None = None,
        registry: JobRegistry | None = None,
    ):
        """
        Initialize the handler.

        Args:
            settings: Resolved runtime settings
            backend: Answer API client (built from settings if omitted)
            store: Conversation store (built from settings if omitted)
            policy: Escalation policy (built from settings if omitted)
            registry: Registry of running ingest pollers
        """
        self.settings = settings
        self.bot_token = settings.slack_bot_token
        self.app_token = settings.slack_app_token
        self.signing_secret = settings.slack_signing_secret

        self.backend = backend if backend is not None else AnswerAPIClient(
            settings.answer_url,
            admin_token=settings.admin_token,
            timeout=settings.request_timeout,
        )
        self.store = store if store is not None else ConversationStore(
            ttl_seconds=settings.conversation_ttl,
            max_threads=settings.conversation_max_threads,
        )
        self.policy = policy if policy is not None else EscalationPolicy(
            support_phone=settings.support_phone,
            support_email=settings.support_email,
        )
        self.registry = registry if registry is not None else JobRegistry()
        self.admin = AdminWorkflows(self.backend, self.registry, poll_interval=settings.poll_interval)

        self._async_app = None
        self._recent_event_ids: dict[str, float] = {}
        self._event_dedupe_ttl = settings.event_dedupe_ttl
        self._tracer = get_tracer()

    def _is_duplicate_event(self, event: dict) -> bool:
        """Return True if the event was recently processed."""
        event_key = event.get("client_msg_id") or event.get("event_ts") or event.get("ts")
        if not event_key:
            return False
        now = time.time()
        cutoff = now - self._event_dedupe_ttl
        for key, ts in list(self._recent_event_ids.items()):
            if ts < cutoff:
                self._recent_event_ids.pop(key, None)
        if event_key in self._recent_event_ids:
            return True
        self._recent_event_ids[event_key] = now
        return False

    @staticmethod
    def _clean_message(text: str) -> str:
        """Remove the leading bot mention and surrounding whitespace."""
        return _MENTION_PATTERN.sub("", text or "", count=1).strip()

    @property
    def async_app(self):
        """Get the async Slack Bolt app instance."""
        if self._async_app is None:
            self._async_app = self._create_async_app()
        return self._async_app

    def _create_async_app(self):
        """Create the AsyncApp and register handlers."""
        from slack_bolt.async_app import AsyncApp

        app = AsyncApp(token=self.bot_token, signing_secret=self.signing_secret)
        self._register_handlers(app)
        logger.info("Slack async app created")
        return app

    def _register_handlers(self, app) -> None:
        @app.event("app_mention")
        async def handle_app_mention(event: dict, say, client) -> None:
            await self.handle_mention(event, say, client)

        self.admin.register(app)

    async def _post_thinking(self, client: Any, channel: str, thread_ts: str) -> str | None:
        if not self.settings.thinking_enabled:
            return None
        try:
            response = await safe_client_call(
                client.chat_postMessage, channel=channel, thread_ts=thread_ts, text=THINKING_TEXT
            )
            return response.get("ts")
        except Exception as e:
            logger.warning("Could not post thinking placeholder", channel=channel, error=str(e))
            return None

    async def _deliver(
        self,
        say,
        client: Any,
        channel: str,
        thread_ts: str,
        placeholder_ts: str | None,
        text: str,
    ) -> None:
        """Replace the placeholder if there is one, otherwise reply in-thread."""
        if placeholder_ts:
            await safe_client_call(client.chat_update, channel=channel, ts=placeholder_ts, text=text)
        else:
            await safe_client_call(say, text=text, thread_ts=thread_ts)

    async def handle_mention(self, event: dict, say, client: Any) -> None:
        """
        Answer one app mention.

        Never raises: failures are logged and reported in the thread.

        Args:
            event: Slack app_mention event
            say: Bolt say function bound to the event channel
            client: Slack AsyncWebClient
        """
        if self._is_duplicate_event(event):
            logger.info("Ignoring duplicate event", msg_id=event.get("client_msg_id"), event_ts=event.get("event_ts"))
            return

        channel = event.get("channel", "")
        user = event.get("user", "")
        message_ts = event.get("ts", "")
        raw_text = event.get("text", "")
        query = self._clean_message(raw_text)

        with self._tracer.start_as_current_span("slack.app_mention") as span:
            span.set_attribute("slack.channel", channel)
            span.set_attribute("slack.user", user)
            span.set_attribute("message.length", len(query))

            thread_ts = message_ts
            placeholder_ts = None
            try:
                now_ms = self.store.now_ms()
                thread_ts = self.store.resolve_thread_id(
                    channel, user, event.get("thread_ts"), message_ts, now_ms=now_ms
                )
                allowlist = resolve_allowlist(
                    self.settings.allowlist_preset, self.settings.allowlist_override, raw_text
                )
                span.set_attribute("slack.thread_ts", thread_ts)
                span.set_attribute("retrieval.allowlist", truncate(allowlist))

                log = logger.bind(channel=channel, user=user, thread_ts=thread_ts)
                log.info("Processing mention", text_preview=query[:50], allowlist=allowlist)

                placeholder_ts = await self._post_thinking(client, channel, thread_ts)

                request = AnswerRequest(
                    question=query,
                    allowlist=allowlist,
                    previous_answer=self.store.last_answer(thread_ts),
                    previous_user=query,
                )
                try:
                    result = await self.backend.answer(request)
                except BackendError as e:
                    log.warning("Answer API call failed", error=str(e), status_code=e.status_code)
                    span.set_attribute("answer.error", truncate(str(e)))
                    await self._deliver(say, client, channel, thread_ts, placeholder_ts, NOT_FOUND_TEXT)
                    return

                ribbon = parse_ribbon(result.settings_summary)
                fallback = is_fallback(ribbon, result.answer)
                escalation_text = self.policy.apply(self.store, thread_ts, fallback, ribbon.tone)
                span.set_attribute("answer.fallback", fallback)
                span.set_attribute("answer.escalated", escalation_text is not None)

                text = shape_response(
                    result,
                    show_citations=self.settings.show_citations,
                    show_ribbon=self.settings.show_ribbon,
                    escalation_text=escalation_text,
                )
                await self._deliver(say, client, channel, thread_ts, placeholder_ts, text)

                self.store.record_answer(
                    thread_ts, channel, user, result.answer or NOT_FOUND_TEXT, now_ms=now_ms
                )
                log.info("Mention answered", citations=len(result.citations), fallback=fallback)

            except Exception as e:
                logger.exception("Error handling app mention", channel=channel, user=user)
                span.record_exception(e)
                try:
                    await self._deliver(say, client, channel, thread_ts, placeholder_ts, ERROR_TEXT)
                except Exception as say_error:
                    logger.error("Failed to report error to Slack", error=str(say_error))

    async def start_async(self) -> None:
        """
        Start the handler in async Socket Mode.

        Blocks until the connection closes or the task is cancelled.

        Raises:
            ValueError: Missing or malformed Slack tokens
        """
        if not self.bot_token or not self.app_token:
            raise ValueError("SLACK_BOT_TOKEN and SLACK_APP_TOKEN are required")
        if not self.app_token.startswith("xapp-"):
            raise ValueError("SLACK_APP_TOKEN must start with 'xapp-'")
        if not self.bot_token.startswith("xoxb-"):
            raise ValueError("SLACK_BOT_TOKEN must start with 'xoxb-'")

        from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler

        logger.info("Starting Slack handler in Async Socket Mode", answer_url=self.backend.base_url)
        handler = AsyncSocketModeHandler(self.async_app, self.app_token)

        try:
            auth_result = await self.async_app.client.auth_test()
            logger.info(
                "Slack bot connected",
                user=auth_result.get("user"),
                user_id=auth_result.get("user_id"),
                team=auth_result.get("team"),
            )
        except Exception as auth_err:
            logger.warning("Could not test Slack auth", error=str(auth_err))

        try:
            await handler.start_async()
        except asyncio.CancelledError:
            logger.info("Slack handler received cancellation, shutting down gracefully")
            await handler.close_async()
            raise

    async def close(self) -> None:
        """Stop running pollers and close the backend client."""
        await self.registry.shutdown()
        await self.backend.aclose()


def create_slack_app(settings: Settings | None = None) -> SlackHandler:
    """Create a Slack handler from settings (environment when omitted).

    Args:
        settings: Runtime settings

    Returns:
        Configured SlackHandler
    """
    return SlackHandler(settings or Settings.from_env())
