"""
Admin workflows triggered from Slack global shortcuts.

- Ingest URL: modal with a single grest.in URL field. The job is enqueued on
  the answer API and its progress is relayed to the requester by DM.
- Sync iPhone specs: confirmation-only modal that runs the catalog sheet
  sync and DMs the summary.

All output goes to the invoking user's DM, never to the originating channel.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import structlog

from answer_bridge.backend.client import AnswerAPIClient
from answer_bridge.backend.errors import BackendError, NotAuthorizedError
from answer_bridge.backend.models import SpecsSyncResult
from answer_bridge.channels.slack_api import open_dm, safe_client_call
from answer_bridge.jobs.poller import DEFAULT_POLL_INTERVAL, JobPoller, JobRegistry
from answer_bridge.site import SITE_DOMAIN, is_site_host

logger = structlog.get_logger(__name__)

INGEST_SHORTCUT = "racen_ingest_url"
INGEST_VIEW = "racen_ingest_url_submit"
SPECS_SYNC_SHORTCUT = "racen_sync_iphone_specs"
SPECS_SYNC_VIEW = "racen_sync_iphone_specs_submit"

URL_BLOCK_ID = "url_block"
URL_ACTION_ID = "url_value"

NOT_AUTHORIZED_TEXT = "You are not authorized to ingest URLs. Please contact an admin if you need access."
GENERIC_ERROR_TEXT = "Error handling that request."


def build_ingest_modal() -> dict[str, Any]:
    """Modal asking for the URL to ingest."""
    return {
        "type": "modal",
        "callback_id": INGEST_VIEW,
        "title": {"type": "plain_text", "text": "Ingest URL"},
        "submit": {"type": "plain_text", "text": "Ingest"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "input",
                "block_id": URL_BLOCK_ID,
                "label": {"type": "plain_text", "text": f"{SITE_DOMAIN} URL"},
                "element": {
                    "type": "plain_text_input",
                    "action_id": URL_ACTION_ID,
                    "placeholder": {"type": "plain_text", "text": f"https://{SITE_DOMAIN}/products/..."},
                },
            }
        ],
    }


def build_specs_sync_modal() -> dict[str, Any]:
    """Confirmation modal for the iPhone specs sync."""
    return {
        "type": "modal",
        "callback_id": SPECS_SYNC_VIEW,
        "title": {"type": "plain_text", "text": "Sync iPhone Specs"},
        "submit": {"type": "plain_text", "text": "Sync"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        "This will sync the latest iPhone prices and specs from the Google Sheet "
                        "into RACEN's database.\n\nUse this after you update the sheet."
                    ),
                },
            }
        ],
    }


def extract_submitted_url(view: dict[str, Any]) -> str:
    """Read the URL field from a submitted ingest modal."""
    values = view.get("state", {}).get("values", {})
    return (values.get(URL_BLOCK_ID, {}).get(URL_ACTION_ID, {}).get("value") or "").strip()


def validate_ingest_url(raw: str) -> str | None:
    """Return the URL if it is an http(s) grest.in URL, else None."""
    try:
        parts = urlsplit(raw)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not is_site_host(parts.hostname):
        return None
    return raw


def format_specs_sync_result(result: SpecsSyncResult) -> str:
    """DM text for a successful specs sync."""
    lines = [
        f"iPhone specs sync status: {result.status}",
        f"Rows written: {result.rows_written}",
    ]
    if result.duplicate_slugs:
        lines.append(f"Duplicate slugs (fix in sheet and retry): {', '.join(result.duplicate_slugs)}")
    if result.slugs_all_missing:
        lines.append(f"No prices set for slugs: {', '.join(result.slugs_all_missing)}")
    if result.slugs_some_missing:
        lines.append(f"Some prices missing for slugs: {', '.join(result.slugs_some_missing)}")
    return "\n".join(lines)


def format_specs_sync_failure(error: BackendError) -> str:
    """DM text for a failed specs sync."""
    if error.status_code is None:
        return f"Specs sync failed: {error}"
    detail = f": {error.detail}" if error.detail else ""
    return f"Specs sync failed (HTTP {error.status_code}){detail}"


class SlackDMNotifier:
    """Posts and edits messages in one DM channel."""

    def __init__(self, client: Any, channel: str):
        self._client = client
        self.channel = channel

    async def post(self, text: str) -> str | None:
        response = await safe_client_call(self._client.chat_postMessage, channel=self.channel, text=text)
        return response.get("ts")

    async def update(self, ts: str, text: str) -> None:
        await safe_client_call(self._client.chat_update, channel=self.channel, ts=ts, text=text)


class AdminWorkflows:
    """Shortcut and modal handlers for the admin workflows."""

    def __init__(
        self,
        backend: AnswerAPIClient,
        registry: JobRegistry,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self._backend = backend
        self._registry = registry
        self._poll_interval = poll_interval

    def register(self, app) -> None:
        """Register shortcut and view handlers on a Bolt AsyncApp."""

        @app.shortcut(INGEST_SHORTCUT)
        async def handle_ingest_shortcut(ack, body: dict, client) -> None:
            await ack()
            await self.open_modal(client, body, build_ingest_modal())

        @app.view(INGEST_VIEW)
        async def handle_ingest_submission(ack, body: dict, client, view) -> None:
            await ack()
            await self.handle_ingest_submission(body, view, client)

        @app.shortcut(SPECS_SYNC_SHORTCUT)
        async def handle_specs_shortcut(ack, body: dict, client) -> None:
            await ack()
            await self.open_modal(client, body, build_specs_sync_modal())

        @app.view(SPECS_SYNC_VIEW)
        async def handle_specs_submission(ack, body: dict, client, view) -> None:
            await ack()
            await self.handle_specs_sync_submission(body, client)

        logger.info("Admin shortcut handlers registered")

    async def open_modal(self, client: Any, body: dict, view: dict[str, Any]) -> None:
        try:
            await safe_client_call(client.views_open, trigger_id=body["trigger_id"], view=view)
        except Exception as e:
            logger.error("Failed to open modal", callback_id=view.get("callback_id"), error=str(e))

    async def _dm(self, client: Any, user_id: str, text: str) -> None:
        try:
            channel = await open_dm(client, user_id)
            await safe_client_call(client.chat_postMessage, channel=channel, text=text)
        except Exception as e:
            logger.error("Failed to DM user", user=user_id, error=str(e))

    async def handle_ingest_submission(self, body: dict, view: dict, client: Any) -> None:
        """
        Validate the URL, enqueue ingestion, and start status polling.

        Args:
            body: View submission payload
            view: Submitted view
            client: Slack client
        """
        user_id = body.get("user", {}).get("id", "")
        target = extract_submitted_url(view)
        log = logger.bind(user=user_id, url=target)
        log.debug("Ingest submitted")

        try:
            if validate_ingest_url(target) is None:
                await self._dm(client, user_id, f"Invalid URL: {target}")
                return

            try:
                job = await self._backend.ingest_url(target, requested_by=user_id)
            except NotAuthorizedError:
                log.info("Ingest rejected as not authorized")
                await self._dm(client, user_id, NOT_AUTHORIZED_TEXT)
                return
            except BackendError as e:
                log.error("Ingest enqueue failed", error=str(e))
                await self._dm(client, user_id, f"Failed to enqueue ingest: {e}")
                return

            log.info("Ingest enqueued", job_id=job.job_id)

            try:
                channel = await open_dm(client, user_id)
            except Exception as e:
                log.error("conversations.open failed", error=str(e))
                return

            poller = JobPoller(
                self._backend.ingest_status,
                SlackDMNotifier(client, channel),
                interval=self._poll_interval,
            )
            self._registry.spawn(poller, job.job_id, target)

        except Exception:
            log.exception("Error handling ingest submission")
            await self._dm(client, user_id, GENERIC_ERROR_TEXT)

    async def handle_specs_sync_submission(self, body: dict, client: Any) -> None:
        """Run the iPhone specs sync and DM the result."""
        user_id = body.get("user", {}).get("id", "")
        log = logger.bind(user=user_id)

        try:
            channel = await open_dm(client, user_id)
        except Exception as e:
            log.error("conversations.open failed", error=str(e))
            return

        try:
            try:
                result = await self._backend.sync_iphone_specs()
            except BackendError as e:
                log.error("Specs sync failed", error=str(e), status_code=e.status_code)
                text = format_specs_sync_failure(e)
            else:
                log.info("Specs sync finished", status=result.status, rows=result.rows_written)
                text = format_specs_sync_result(result)
            await safe_client_call(client.chat_postMessage, channel=channel, text=text)
        except Exception as e:
            log.exception("Error handling specs sync submission")
            try:
                await safe_client_call(client.chat_postMessage, channel=channel, text=f"Specs sync failed: {e}")
            except Exception as dm_error:
                log.error("Failed to DM specs sync error", error=str(dm_error))
