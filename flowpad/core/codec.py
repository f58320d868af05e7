"""
Rich-text <-> markup conversion for note bodies.

The editor works on a small HTML subset; files store a markdown-like markup
with four inline styles:

    **bold**   *italic*   __underline__   ~~strikethrough~~

Encoding walks the HTML with ``html.parser``; decoding scans the markup with
an explicit delimiter whitelist where the longest delimiter wins (``**``
before ``*``). Overlapping or nested styles are best-effort only.
"""

from __future__ import annotations

import html
from html.parser import HTMLParser

BOLD = "**"
ITALIC = "*"
UNDERLINE = "__"
STRIKE = "~~"

# longest first: precedence between delimiters sharing a character
DELIMITERS = (BOLD, UNDERLINE, STRIKE, ITALIC)

_TAG_TO_DELIMITER = {
    "b": BOLD,
    "strong": BOLD,
    "i": ITALIC,
    "em": ITALIC,
    "u": UNDERLINE,
    "s": STRIKE,
    "strike": STRIKE,
    "del": STRIKE,
}

_DELIMITER_TO_TAG = {
    BOLD: "strong",
    ITALIC: "em",
    UNDERLINE: "u",
    STRIKE: "s",
}

_BLOCK_TAGS = {"div", "p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre"}


class _MarkupWriter(HTMLParser):
    """
    Collects text and styled runs from editor HTML.

    Every open style gets its own buffer; closing a style wraps the buffered
    text in its delimiter. Touching runs of the same style are merged into one
    run (`<em>a</em><em>b</em>` writes `*ab*`). Whitespace at the edges of a run is moved outside
    the delimiters and runs are split per line, so the output only contains
    runs the decoder can read back.
    """

    def __init__(self, *, styled: bool = True):
        super().__init__(convert_charrefs=True)
        self.styled = styled
        self._root: list = []
        self._stack: list[tuple[str, list]] = []

    # ───────────── buffers ─────────────

    def _buffer(self) -> list:
        return self._stack[-1][1] if self._stack else self._root

    def _last_char(self) -> str | None:
        for buf in [b for _, b in reversed(self._stack)] + [self._root]:
            for piece in reversed(buf):
                piece = str(piece)
                if piece:
                    return piece[-1]
        return None

    def _push(self, tag: str) -> None:
        self._stack.append((tag, []))

    def _pop(self) -> None:
        tag, buf = self._stack.pop()
        text = _join(buf)
        delim = _TAG_TO_DELIMITER[tag]
        parent = self._buffer()
        if not self.styled:
            parent.append(text)
        elif parent and isinstance(parent[-1], _Run) and parent[-1].delim == delim:
            parent[-1].text += text
        else:
            parent.append(_Run(delim, text))

    # ───────────── HTMLParser hooks ─────────────

    def handle_starttag(self, tag, attrs):
        if tag in _TAG_TO_DELIMITER:
            self._push(tag)
        elif tag == "br":
            self._buffer().append("\n")
        elif tag in _BLOCK_TAGS and self._last_char() not in (None, "\n"):
            self._buffer().append("\n")

    def handle_startendtag(self, tag, attrs):
        if tag == "br":
            self._buffer().append("\n")

    def handle_endtag(self, tag):
        if tag not in _TAG_TO_DELIMITER:
            return
        delim = _TAG_TO_DELIMITER[tag]
        if not any(_TAG_TO_DELIMITER[t] == delim for t, _ in self._stack):
            return
        # overlapping tags: close everything down to the matching style
        while self._stack:
            top = self._stack[-1][0]
            self._pop()
            if _TAG_TO_DELIMITER[top] == delim:
                break

    def handle_data(self, data):
        self._buffer().append(data.replace("\xa0", " "))

    def close(self) -> None:
        super().close()
        while self._stack:
            self._pop()

    def result(self) -> str:
        return _join(self._root)


class _Run:
    """A closed styled run, wrapped only when its buffer is joined."""

    __slots__ = ("delim", "text")

    def __init__(self, delim: str, text: str):
        self.delim = delim
        self.text = text

    def __str__(self) -> str:
        return _wrap(self.text, self.delim)


def _join(pieces: list) -> str:
    return "".join(str(p) for p in pieces)


def _wrap(text: str, delim: str) -> str:
    lines = text.split("\n")
    out = []
    for line in lines:
        core = line.strip()
        if not core:
            out.append(line)
            continue
        lead = line[: len(line) - len(line.lstrip())]
        trail = line[len(line.rstrip()):]
        out.append(f"{lead}{delim}{core}{delim}{trail}")
    return "\n".join(out)


def html_to_markup(rich_text: str | None) -> str:
    """Editor HTML -> stored markup."""
    writer = _MarkupWriter(styled=True)
    writer.feed(rich_text or "")
    writer.close()
    return writer.result().strip()


def html_to_text(rich_text: str | None) -> str:
    """Editor HTML -> plain text, styles dropped."""
    writer = _MarkupWriter(styled=False)
    writer.feed(rich_text or "")
    writer.close()
    return writer.result().strip()


# ───────────────────────── decoding ─────────────────────────


def _opens_at(text: str, i: int, delim: str) -> bool:
    j = i + len(delim)
    return text.startswith(delim, i) and j < len(text) and not text[j].isspace()


def _find_closer(text: str, start: int, delim: str) -> int | None:
    """Index of the delimiter closing a run opened before ``start`` (same line)."""
    j = start + 1
    n = len(text)
    while j < n:
        ch = text[j]
        if ch == "\n":
            return None
        if delim == ITALIC and text.startswith(BOLD, j):
            can_close = not text[j - 1].isspace()
            # "a***b**": the first star closes the italic, a bold run follows
            if can_close and text.startswith(ITALIC * 3, j):
                return j
            if _opens_at(text, j, BOLD):
                bold_end = _find_closer(text, j + len(BOLD), BOLD)
                if bold_end is not None:
                    # a complete bold run inside italic text is skipped whole
                    j = bold_end + len(BOLD)
                    continue
            if can_close:
                return j
            j += len(BOLD)
            continue
        if text.startswith(delim, j) and not text[j - 1].isspace():
            return j
        j += 1
    return None


def _decode(text: str) -> str:
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        for delim in DELIMITERS:
            if not _opens_at(text, i, delim):
                continue
            start = i + len(delim)
            end = _find_closer(text, start, delim)
            if end is None:
                continue
            tag = _DELIMITER_TO_TAG[delim]
            out.append(f"<{tag}>{_decode(text[start:end])}</{tag}>")
            i = end + len(delim)
            break
        else:
            ch = text[i]
            out.append("<br>" if ch == "\n" else html.escape(ch, quote=False))
            i += 1
    return "".join(out)


def markup_to_html(markup: str | None) -> str:
    """Stored markup -> editor HTML."""
    text = (markup or "").replace("\r\n", "\n")
    return _decode(text)
