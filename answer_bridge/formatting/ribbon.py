"""
Parser for the answer API settings ribbon.

The ribbon (`settings_summary`) is a free-text debug line such as::

    mode=short k=18 fallback=0 intent=product tone=neutral

Only `fallback`, `intent` and `tone` drive behaviour. Everything else is
kept in `fields` for logging. Unknown or malformed tokens are skipped, and
values end at the first character outside `[A-Za-z0-9_.-]`, so bracketed or
punctuated ribbons such as `[fallback=1]` parse the same as bare ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_TOKEN_PATTERN = re.compile(r"\b([A-Za-z_][\w.-]*)=([\w.-]*)")


@dataclass(frozen=True)
class Ribbon:
    """Parsed view of a settings ribbon."""

    raw: str = ""
    fields: dict[str, str] = field(default_factory=dict)

    @property
    def fallback(self) -> bool:
        return self.fields.get("fallback") == "1"

    @property
    def intent(self) -> str | None:
        value = self.fields.get("intent")
        return value.lower() if value else None

    @property
    def tone(self) -> str:
        value = self.fields.get("tone")
        return value.lower() if value else "neutral"

    @property
    def is_product_intent(self) -> bool:
        return self.intent == "product"

    def __bool__(self) -> bool:
        return bool(self.raw)


def parse_ribbon(raw: str | None) -> Ribbon:
    """Parse a ribbon string; first occurrence of a key wins."""
    text = (raw or "").strip()
    fields: dict[str, str] = {}
    for match in _TOKEN_PATTERN.finditer(text):
        key = match.group(1).lower()
        # "fallback=1." at the end of a sentence still means "1"
        fields.setdefault(key, match.group(2).rstrip(".-"))
    return Ribbon(raw=text, fields=fields)
