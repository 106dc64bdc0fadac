"""Slack Web API call helpers shared by the mention and admin handlers."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

import structlog
from slack_sdk.errors import SlackApiError

logger = structlog.get_logger(__name__)


async def safe_client_call(method, max_retries: int = 3, **kwargs: Any) -> Any:
    """Call a Slack client method (or Bolt `say`) with retry logic.

    Works with both the async client, which returns a coroutine, and the sync
    client, which returns the SlackResponse directly. Rate-limited calls wait
    for Retry-After; timeouts back off exponentially.

    Args:
        method: The client method to call (e.g., client.chat_postMessage)
        max_retries: Maximum retry attempts (default: 3)
        **kwargs: Arguments to pass to the method

    Returns:
        The result (SlackResponse) from the client method

    Raises:
        SlackApiError: Non-retryable API errors
        RuntimeError: The response carried ok=false
    """
    last_error: Exception | None = None
    for attempt in range(max_retries):
        try:
            result = method(**kwargs)
            if inspect.isawaitable(result):
                result = await result
            if hasattr(result, "get") and result.get("ok") is False:
                error = result.get("error", "unknown_error")
                raise RuntimeError(f"Slack API error: {error}")
            return result
        except SlackApiError as e:
            last_error = e
            if e.response.get("error") == "ratelimited" and attempt < max_retries - 1:
                retry_after = int(e.response.headers.get("Retry-After", 2 ** attempt))
                logger.warning(
                    "Slack rate limited, waiting",
                    retry_after=retry_after,
                    attempt=attempt + 1,
                )
                await asyncio.sleep(retry_after)
            else:
                raise
        except TimeoutError as e:
            last_error = e
            if attempt < max_retries - 1:
                wait_time = 2 ** attempt
                logger.warning(
                    "Slack API timeout, retrying",
                    wait_time=wait_time,
                    attempt=attempt + 1,
                )
                await asyncio.sleep(wait_time)
            else:
                raise

    if last_error:
        raise last_error
    return None


async def open_dm(client: Any, user_id: str) -> str:
    """Open (or reuse) the DM channel with a user and return its ID."""
    response = await safe_client_call(client.conversations_open, users=user_id)
    return response["channel"]["id"]
