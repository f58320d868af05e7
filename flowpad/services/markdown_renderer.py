from __future__ import annotations

import html

import markdown as md
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor

from flowpad.core.sanitize import sanitize_rendered_html


class InlineStylesExtension(Extension):
    """``__underline__`` and ``~~strike~~`` as stored by the note codec."""

    def extendMarkdown(self, md_instance):
        # ahead of the stock emphasis patterns, which read "__" as bold
        md_instance.inlinePatterns.register(SimpleTagInlineProcessor(r"(__)(.+?)__", "u"), "underline", 65)
        md_instance.inlinePatterns.register(SimpleTagInlineProcessor(r"(~~)(.+?)~~", "s"), "strike", 64)


class MarkdownRenderer:
    def __init__(self):
        self._extensions = [InlineStylesExtension(), "nl2br"]

    def render_body(self, markup: str) -> str:
        rendered = md.markdown(markup or "", extensions=self._extensions)
        return sanitize_rendered_html(rendered)

    def render_page(self, markup: str, *, title: str) -> str:
        rendered = self.render_body(markup)

        return f"""\
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8"/>
  <title>{html.escape(title)}</title>
  <style>
    body {{ font-family: sans-serif; padding: 16px; line-height: 1.5; }}
    code, pre {{ background: #f5f5f5; }}
    pre {{ padding: 12px; overflow-x: auto; }}
  </style>
</head>
<body>{rendered}</body>
</html>
"""
