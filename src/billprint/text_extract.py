"""Plain-text extraction of HTML bills for raw (dot-matrix) printing."""

from __future__ import annotations

import html
import re
from typing import Dict, Tuple

SEPARATOR_WIDTH = 40
SEPARATOR_LINE = "-" * SEPARATOR_WIDTH

# Feeds the last printed line past the tear bar, then ejects the form.
RECEIPT_PADDING = "\n" * 6 + "\f"

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b.*?(?:</\1\s*>|\Z)", re.I | re.S)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|\Z)", re.S)
_PRE_RE = re.compile(r"<pre\b[^>]*>(.*?)(?:</pre\s*>|\Z)", re.I | re.S)
_BODY_RE = re.compile(r"<body\b[^>]*>(.*?)(?:</body\s*>|\Z)", re.I | re.S)
_TAG_RE = re.compile(r"<[^>]*(?:>|\Z)", re.S)
_LEAKED_BLOCK_RE = re.compile(r"<\s*/?\s*(?:script|style)", re.I)
_ENTITY_RE = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")
_HSPACE_RE = re.compile(r"[ \t]{2,}|\t")

# Ordered (tag pattern -> replacement) rules applied before tags are stripped.
_BLOCK_RULES: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"</(?:p|div|tr|li|table|h[1-6])\s*>", re.I), "\n"),
    (re.compile(r"<br\b[^>]*>", re.I), "\n"),
    (re.compile(r"<hr\b[^>]*>", re.I), "\n" + SEPARATOR_LINE + "\n"),
    (re.compile(r"</t[dh]\s*>", re.I), "  "),
)

_ENTITY_TABLE: Dict[str, str] = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
    "apos": "'",
    "#8377": "Rs.",
    "#x20b9": "Rs.",
    "inr": "Rs.",
    "times": "x",
    "#215": "x",
    "#xd7": "x",
}

# Literal glyphs that dot-matrix code pages cannot print.
_GLYPH_TABLE: Dict[str, str] = {
    "₹": "Rs.",
    "×": "x",
    "\u00a0": " ",
}


def _decode_entity(match: re.Match[str]) -> str:
    name = match.group(1).lower()
    if name in _ENTITY_TABLE:
        return _ENTITY_TABLE[name]
    return html.unescape(match.group(0))


def decode_entities(text: str) -> str:
    """Decode entities in a single pass, then map unprintable glyphs."""
    decoded = _ENTITY_RE.sub(_decode_entity, text)
    for glyph, replacement in _GLYPH_TABLE.items():
        decoded = decoded.replace(glyph, replacement)
    return decoded


def _strip_hidden_blocks(markup: str) -> str:
    without_comments = _COMMENT_RE.sub("", markup)
    return _SCRIPT_STYLE_RE.sub("", without_comments)


def _scrub_leaked_blocks(text: str) -> str:
    # Repeat until stable: removing one opener can splice another together.
    while True:
        scrubbed = _LEAKED_BLOCK_RE.sub("", text)
        if scrubbed == text:
            return scrubbed
        text = scrubbed


def _looks_like_css(line: str) -> bool:
    return "{" in line or "}" in line or line.startswith("@")


def normalize_whitespace(text: str) -> str:
    """Trim lines, drop stray CSS, keep two-space column gaps, single blank lines."""
    lines = []
    previous_blank = True  # drops leading blank lines
    for raw_line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        line = _HSPACE_RE.sub("  ", raw_line.strip())
        if _looks_like_css(line):
            continue
        if not line:
            if not previous_blank:
                lines.append("")
            previous_blank = True
            continue
        previous_blank = False
        lines.append(line)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def extract_text(markup: str) -> str:
    """
    Reduce an HTML bill to printable text, without the trailing padding.

    A ``<pre>`` region wins over everything else and is kept verbatim;
    otherwise the ``<body>`` (or whole document) is flattened with block
    tags turned into line breaks and table cells into two-space gaps.
    """
    source = _strip_hidden_blocks(str(markup or ""))

    pre_match = _PRE_RE.search(source)
    if pre_match is not None:
        body = decode_entities(pre_match.group(1)).replace("\r\n", "\n").strip()
        return _scrub_leaked_blocks(body)

    body_match = _BODY_RE.search(source)
    text = body_match.group(1) if body_match is not None else source
    for pattern, replacement in _BLOCK_RULES:
        text = pattern.sub(replacement, text)
    text = _TAG_RE.sub("", text)
    text = decode_entities(text)
    return _scrub_leaked_blocks(normalize_whitespace(text))


def extract(markup: str) -> str:
    """Printable receipt text for raw spooling, padded for paper ejection."""
    return extract_text(markup) + RECEIPT_PADDING
