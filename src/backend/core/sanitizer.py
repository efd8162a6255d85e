"""
HTML sanitization for chat messages.

Chat text is checked with nh3 (maintained by Cloudflare) before it is stored
or relayed. Harmless text, including bare "&" and "<", is kept byte for byte.
"""

import html
from typing import Optional

import nh3

# Allowed HTML tags for basic text formatting
ALLOWED_TAGS = {
    "b",
    "i",
    "strong",
    "em",
    "u",
    "s",
    "br",
    "p",
    "code",
    "pre",
}

# No attributes at all
ALLOWED_ATTRIBUTES = {}

MAX_CLEAN_PASSES = 3


def sanitize_html(content: str) -> str:
    """
    Strip dangerous HTML while keeping basic formatting.

    Example:
        >>> sanitize_html('<b>Hello</b><script>alert("XSS")</script>')
        '<b>Hello</b>'
    """
    if not content:
        return ""

    return nh3.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        link_rel=None,
    )


def sanitize_message_text(content: Optional[str], max_length: int) -> Optional[str]:
    """
    Normalize chat text: trim, enforce maximum length, drop unsafe markup.

    Text is stored exactly as sent unless nh3 would remove something from it
    (script/style blocks, event-handler attributes, unknown tags). Plain
    characters such as '&' and '<' are never rewritten as entities, since
    both clients render message_text as text.

    Returns None for missing or whitespace-only text so callers can treat
    "no text" uniformly.

    Raises:
        ValueError: If the text exceeds max_length
    """
    if content is None:
        return None

    content = content.strip()
    if not content:
        return None

    if len(content) > max_length:
        raise ValueError(f"Message exceeds maximum length of {max_length} characters")

    # nh3 escapes bare text; compare decoded forms to see if any markup was removed.
    # Decoding can surface new markup from escaped input, so clean until stable.
    for _ in range(MAX_CLEAN_PASSES):
        decoded = html.unescape(sanitize_html(content))
        if decoded == html.unescape(content):
            return content
        content = decoded.strip()
        if not content:
            return None

    return sanitize_html(content) or None
