"""
Retrieval scope ("allowlist") resolution.

The answer API restricts retrieval to a comma-separated list of site paths.
The scope is chosen from, highest priority first:

1. The path of a grest.in URL pasted into the mention (query string dropped)
2. An explicit override (RETRIEVE_SOURCE_ALLOWLIST)
3. A named preset (SLACK_ALLOWLIST_PRESET), unknown names meaning "faqs"

An empty string means unscoped (full site).
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from answer_bridge.site import SITE_DOMAIN

FAQS = "/pages/faqs"
SHIPPING_POLICY = "/policies/shipping/policy"
REFUND_POLICY = "/policies/refund/policy"

PRESETS: dict[str, str] = {
    "all": "",
    "shipping": f"{SHIPPING_POLICY},{REFUND_POLICY}",
    "faqs_shipping": f"{FAQS},{SHIPPING_POLICY},{REFUND_POLICY}",
    "faqs_warranty_policies": ",".join(
        [FAQS, "/pages/warranty", "/policies/terms/of/service", REFUND_POLICY, SHIPPING_POLICY]
    ),
    "all_subset": f"{FAQS},{SHIPPING_POLICY},{REFUND_POLICY}",
    "faqs": FAQS,
}
DEFAULT_PRESET = "faqs"

# Slack wraps links as <url> or <url|label>, so stop at the delimiters
_SITE_URL_PATTERN = re.compile(
    rf"https?://(?:www\.)?{re.escape(SITE_DOMAIN)}/[^\s<>|]+", re.IGNORECASE
)


def allowlist_for_preset(preset: str | None) -> str:
    """Map a preset name to its allowlist, defaulting to FAQs."""
    return PRESETS.get((preset or "").strip().lower(), PRESETS[DEFAULT_PRESET])


def extract_site_path(text: str | None) -> str | None:
    """Return the path of the first grest.in URL in `text`, if any."""
    match = _SITE_URL_PATTERN.search(text or "")
    if not match:
        return None
    try:
        return urlsplit(match.group(0)).path or "/"
    except ValueError:
        return None


def resolve_allowlist(
    preset: str | None,
    override: str | None,
    mention_text: str | None,
) -> str:
    """
    Resolve the retrieval scope for a mention.

    Args:
        preset: Preset name (case-insensitive)
        override: Explicit allowlist; used when non-empty
        mention_text: Raw mention text, scanned for a product-site URL

    Returns:
        Allowlist string, possibly empty for unscoped retrieval
    """
    site_path = extract_site_path(mention_text)
    if site_path is not None:
        return site_path

    explicit = (override or "").strip()
    if explicit:
        return explicit

    return allowlist_for_preset(preset)
