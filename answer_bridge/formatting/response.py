"""
Shape answer API results into Slack message text.

Order of operations matters:

1. Answer plus optional citations block
2. Escalation handoff replaces the whole body when triggered
3. Product link appended for product-intent answers
4. Markdown links converted to Slack links
5. Ribbon appended last, in italics

Everything here is pure; thread state is handled by the caller.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from answer_bridge.backend.models import AnswerResult, Citation
from answer_bridge.formatting.markdown_to_slack import convert_markdown_links
from answer_bridge.formatting.ribbon import Ribbon, parse_ribbon
from answer_bridge.site import SITE_DOMAIN, clean_url, is_product_url

NOT_FOUND_TEXT = "Info not found"
MAX_CITATIONS = 6

FALLBACK_PREFIXES: tuple[str, ...] = (
    "I couldn’t find an exact line on that",
    "I couldn’t find the exact info",
    "Exact info nahi mila",
    "Exact line nahi mila",
)

_SITE = re.escape(SITE_DOMAIN)
_COLLECTION_LINK = re.compile(rf"https?://(?:www\.)?{_SITE}/collections/iphones\b", re.IGNORECASE)
_PRODUCT_BULLET = re.compile(rf"- \[[^\]]+\]\(https?://(?:www\.)?{_SITE}/products/")


def is_fallback(ribbon: Ribbon, answer: str | None) -> bool:
    """
    Classify an answer as a fallback ("couldn't find") response.

    Args:
        ribbon: Parsed settings ribbon
        answer: Raw answer text

    Returns:
        True when the ribbon reports fallback=1 or the answer opens with a
        known not-found phrasing (curly or straight apostrophe)
    """
    if ribbon.fallback:
        return True
    text = (answer or "").strip().replace("'", "’")
    return text.startswith(FALLBACK_PREFIXES)


def _line_number(value: int | None) -> str:
    return "?" if value is None else str(value)


def format_citations(citations: Sequence[Citation], limit: int = MAX_CITATIONS) -> str:
    """Render up to `limit` citations, one per line, in received order."""
    return "\n".join(
        f"[${index}] {citation.url} (lines {_line_number(citation.start_line)}-{_line_number(citation.end_line)})"
        for index, citation in enumerate(citations[:limit], start=1)
    )


def pick_primary_product(citations: Sequence[Citation]) -> Citation | None:
    """
    Choose the product citation to link.

    A citation spanning exactly line 1 is the representative page; otherwise
    the last product citation wins.
    """
    products = [c for c in citations if is_product_url(c.url)]
    for citation in products:
        if citation.start_line == 1 and citation.end_line == 1:
            return citation
    return products[-1] if products else None


def add_product_link(text: str, citations: Sequence[Citation], ribbon: Ribbon) -> str:
    """
    Append a clean product page link on its own line for product answers.

    Skipped when the ribbon intent is not product, there are no citations,
    the text already links the iPhone collection, or it already lists two or
    more product bullets.
    """
    if not ribbon.is_product_intent or not citations:
        return text
    if _COLLECTION_LINK.search(text) or len(_PRODUCT_BULLET.findall(text)) >= 2:
        return text

    primary = pick_primary_product(citations)
    if primary is None:
        return text
    url = clean_url(primary.url)
    if not url or url in text:
        return text
    return f"{text}\n\n[Product page]({url})"


def shape_response(
    result: AnswerResult,
    *,
    show_citations: bool,
    show_ribbon: bool,
    escalation_text: str | None = None,
) -> str:
    """
    Build the final Slack text for an answer.

    Args:
        result: Parsed answer API response
        show_citations: Include the citations block
        show_ribbon: Append the settings ribbon even with citations hidden
        escalation_text: Handoff block replacing the body, if escalating

    Returns:
        Slack mrkdwn text
    """
    answer = result.answer or NOT_FOUND_TEXT
    ribbon = parse_ribbon(result.settings_summary)

    text = answer
    if show_citations and result.citations:
        text += "\n\n*Citations:*\n" + format_citations(result.citations)

    if escalation_text:
        text = escalation_text

    text = add_product_link(text, result.citations, ribbon)
    text = convert_markdown_links(text) or ""

    if (show_citations or show_ribbon) and ribbon:
        text = f"{text}\n\n_{ribbon.raw}_"

    return text
