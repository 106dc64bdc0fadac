"""
Response formatting for Slack.

Provides:
- Settings ribbon parsing
- Markdown link to Slack link conversion
- Answer shaping (citations, product links, escalation, ribbon)
"""

from answer_bridge.formatting.markdown_to_slack import (
    MarkdownToSlackConverter,
    convert_markdown_links,
)
from answer_bridge.formatting.response import (
    NOT_FOUND_TEXT,
    add_product_link,
    format_citations,
    is_fallback,
    pick_primary_product,
    shape_response,
)
from answer_bridge.formatting.ribbon import Ribbon, parse_ribbon

__all__ = [
    "MarkdownToSlackConverter",
    "NOT_FOUND_TEXT",
    "Ribbon",
    "add_product_link",
    "convert_markdown_links",
    "format_citations",
    "is_fallback",
    "parse_ribbon",
    "pick_primary_product",
    "shape_response",
]
