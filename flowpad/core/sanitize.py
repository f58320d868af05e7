from __future__ import annotations

import bleach

ALLOWED_TAGS = frozenset({
    "p", "br", "hr", "div", "span",
    "strong", "em", "u", "s", "b", "i", "del",
    "code", "pre", "blockquote",
    "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "a",
})
ALLOWED_ATTRS = {
    "a": ["href", "title"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def sanitize_rendered_html(rendered_html: str) -> str:
    """Drop scripts, handlers and unknown tags from HTML before it leaves the app."""
    return bleach.clean(
        rendered_html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
