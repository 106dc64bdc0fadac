"""
Markdown link to Slack link conversion.

The answer API writes links as GitHub-flavored markdown. Slack mrkdwn does not
render `[label](url)`, so labels would show up as raw text:

- Markdown: [Product page](https://grest.in/products/x)
- Slack:    <https://grest.in/products/x|Product page>

Only links are rewritten. Bold, italics and everything else pass through
untouched because the answer API already emits Slack-compatible emphasis.
"""

from __future__ import annotations

import re


class MarkdownToSlackConverter:
    """
    Converts markdown links to Slack link markup, line by line.

    Conversion is idempotent: converted `<url|label>` links no longer match
    the markdown pattern, so running the converter twice is a no-op the
    second time.
    """

    LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((https?://[^\s)]+)\)")

    def convert_line(self, line: str) -> str:
        """Convert every markdown link on a single line."""
        return self.LINK_PATTERN.sub(self._replace_link, line)

    def convert_text(self, text: str | None) -> str | None:
        """
        Convert markdown links in multi-line text.

        Args:
            text: Text that may contain markdown links

        Returns:
            Text with links in Slack markup; falsy input is returned as-is
        """
        if not text:
            return text
        return "\n".join(self.convert_line(line) for line in text.split("\n"))

    @staticmethod
    def _replace_link(match: re.Match) -> str:
        label = match.group(1).strip()
        url = match.group(2).strip()
        if not label or not url:
            return match.group(0)
        return f"<{url}|{label}>"


_converter = MarkdownToSlackConverter()


def convert_markdown_links(text: str | None) -> str | None:
    """Convenience wrapper around `MarkdownToSlackConverter.convert_text`."""
    return _converter.convert_text(text)
