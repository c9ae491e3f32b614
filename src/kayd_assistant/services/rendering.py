"""Safe markup for message content.

Message content supports two pieces of markup only: ``**bold**`` spans and
line breaks. Everything else is escaped, so content can never inject tags.
"""

import html
import re

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_BULLETS = re.compile(r"[•#]")


def render(content: str) -> str:
    """Escape content and reinterpret bold spans and newlines."""
    escaped = html.escape(content, quote=True)
    lines = [_BOLD.sub(r"<strong>\1</strong>", line) for line in escaped.split("\n")]
    return "<br>".join(lines)


def to_plain_text(content: str) -> str:
    """Strip markup for copying a reply to the clipboard."""
    return _BULLETS.sub("-", content.replace("**", ""))
