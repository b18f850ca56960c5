"""Footnote section detection, definition materialization and cleanup passes."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from cite_wide.constants import FOOTNOTES_HEADING, REFERENCE_SECTION_TITLES

logger = logging.getLogger(__name__)

# Pattern for matching markdown headings (H1-H6)
HEADING_PATTERN = re.compile(r"^(?P<hashes>#{1,6})[ \t]+(?P<title>.+?)[ \t]*\r?$", re.MULTILINE)

# Only "# Footnotes" and "## Footnotes" count as the footnotes section
FOOTNOTE_HEADING_PATTERN = re.compile(r"^#{1,2}[ \t]+Footnotes[ \t]*\r?$", re.MULTILINE)

DEFINITION_LINE_PATTERN = re.compile(r"^[ \t]*\[\^[^\]\s]+\]:")

# [^id] text, [^id]:text, [^id] : text  ->  [^id]: text
LOOSE_DEFINITION_PATTERN = re.compile(r"^(?P<indent>[ \t]*)\[\^(?P<id>[A-Za-z0-9]+)\][ \t]*:?[ \t]*(?P<body>\S.*)$")

CITATION_WITH_LABELLED_LINK = re.compile(r"\[(\d+)\]\s*\[[^\]]+\]\([^)]+\)")
CITATION_WITH_LINK = re.compile(r"\[(\d+)\]\([^)]+\)")

URL_PATTERN = re.compile(r"https?://[^\s<>\[\]]+")


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _parse_headings(text: str) -> list[dict[str, Any]]:
    """Return markdown headings with their level, title and line offsets."""
    headings: list[dict[str, Any]] = []
    for match in HEADING_PATTERN.finditer(text):
        end = match.end()
        if end < len(text) and text[end] == "\n":
            end += 1
        headings.append(
            {
                "level": len(match.group("hashes")),
                "title": match.group("title").strip(),
                "start": match.start(),
                "end": end,
            }
        )
    return headings


def _section_bounds(headings: list[dict[str, Any]], index: int, text_length: int) -> tuple[int, int]:
    """Offsets bracketing the body of ``headings[index]``.

    The body runs from just after the heading line to the next heading of equal
    or higher level, or to the end of the document.
    """
    current = headings[index]
    for subsequent in headings[index + 1 :]:
        if subsequent["level"] <= current["level"]:
            return current["end"], subsequent["start"]
    return current["end"], text_length


def is_reference_heading(title: str) -> bool:
    """True when a heading title names a references/footnotes/sources section."""
    return " ".join(title.split()).lower() in REFERENCE_SECTION_TITLES


def reference_sections(text: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` body offsets of every references-style section."""
    headings = _parse_headings(text)
    return [
        _section_bounds(headings, index, len(text))
        for index, heading in enumerate(headings)
        if is_reference_heading(heading["title"])
    ]


def clean_url(url: str) -> str:
    """Strip wrapping angle brackets, trailing punctuation and unbalanced ``)``."""
    cleaned = url.strip().rstrip(".,;:").strip("<>").rstrip(".,;:")
    while cleaned.endswith(")") and cleaned.count(")") > cleaned.count("("):
        cleaned = cleaned[:-1].rstrip(".,;:")
    return cleaned


def extract_source(text: str) -> Optional[str]:
    """Return the URL carried by ``text``, falling back to the trimmed text itself."""
    stripped = text.strip()
    if not stripped:
        return None
    match = URL_PATTERN.search(stripped)
    if match:
        return clean_url(match.group(0)) or None
    return stripped


# ==============================================================================
# FOOTNOTE SECTION
# ==============================================================================


def find_footnote_section(text: str) -> Optional[tuple[int, int]]:
    """Locate the footnotes heading.

    Returns:
        ``(start, end)`` offsets of the heading line (``end`` includes the line
        break when there is one), or ``None`` when the document has no
        ``# Footnotes`` / ``## Footnotes`` heading. The first heading wins.
    """
    match = FOOTNOTE_HEADING_PATTERN.search(text)
    if match is None:
        return None
    end = match.end()
    if end < len(text) and text[end] == "\n":
        end += 1
    return match.start(), end


def ensure_footnote_section(text: str) -> str:
    """Return ``text`` with a footnotes heading, appending one at the end if missing.

    Existing content is never modified; the heading is separated from it by a
    blank line.
    """
    if find_footnote_section(text) is not None:
        return text
    if not text or text.endswith("\n\n"):
        separator = ""
    elif text.endswith("\n"):
        separator = "\n"
    else:
        separator = "\n\n"
    return f"{text}{separator}{FOOTNOTES_HEADING}\n"


def has_footnote_definition(text: str, hex_id: str, url: Optional[str] = None) -> bool:
    """True when a line starts with a ``[^hex_id]:`` definition.

    With ``url`` the definition must read exactly ``[^hex_id]: url``; without it
    any definition of ``hex_id`` counts.
    """
    body = r".*" if url is None else r"[ \t]*" + re.escape(url) + r"[ \t]*\r?$"
    pattern = re.compile(r"^[ \t]*" + re.escape(f"[^{hex_id}]:") + body, re.MULTILINE)
    return pattern.search(text) is not None


def _definition_insert_position(text: str, heading_end: int) -> int:
    """Offset just past the definition block that follows the heading."""
    position = heading_end
    cursor = heading_end
    while cursor < len(text):
        line_end = text.find("\n", cursor)
        next_cursor = len(text) if line_end == -1 else line_end + 1
        line = text[cursor:next_cursor]
        if DEFINITION_LINE_PATTERN.match(line):
            position = next_cursor
        elif line.strip():
            break
        cursor = next_cursor
    return position


def append_footnote_definition(text: str, hex_id: str, url: str) -> tuple[str, bool]:
    """Append ``[^hex_id]: url`` to the footnotes section.

    Creates the section when the document has none. Nothing is added when a
    line already defines ``hex_id``, whatever source it gives; the existing
    definition wins.

    Returns:
        The updated text and whether a definition line was added.
    """
    if has_footnote_definition(text, hex_id):
        return text, False

    text = ensure_footnote_section(text)
    section = find_footnote_section(text)
    if section is None:
        raise ValueError("Footnotes section could not be located after creation.")

    position = _definition_insert_position(text, section[1])
    prefix = "" if position == 0 or text[position - 1] == "\n" else "\n"
    definition = f"{prefix}[^{hex_id}]: {url}\n"
    return text[:position] + definition + text[position:], True


# ==============================================================================
# CLEANUP PASSES
# ==============================================================================


def normalize_footnote_definitions(text: str) -> tuple[str, int]:
    """Give every footnote definition line the ``[^id]: text`` form.

    Lines such as ``[^a1b2c3] Source`` or ``[^a1b2c3]:Source`` gain the colon and
    a single space. Intended for a references section or a selection of one.

    Returns:
        The rewritten text and the number of lines that changed.
    """
    changed = 0
    lines = text.split("\n")
    for index, line in enumerate(lines):
        match = LOOSE_DEFINITION_PATTERN.match(line)
        if not match:
            continue
        normalized = f"{match.group('indent')}[^{match.group('id')}]: {match.group('body')}"
        if normalized != line:
            lines[index] = normalized
            changed += 1
    return "\n".join(lines), changed


def normalize_reference_sections(text: str) -> tuple[str, int]:
    """Apply :func:`normalize_footnote_definitions` inside references-style sections only."""
    total = 0
    # Back to front so earlier section offsets stay valid
    for start, end in reversed(reference_sections(text)):
        body, changed = normalize_footnote_definitions(text[start:end])
        if changed:
            text = text[:start] + body + text[end:]
            total += changed
    return text, total


def strip_citation_links(text: str) -> tuple[str, int]:
    """Collapse ``[N][label](url)`` and ``[N](url)`` into a bare ``[N]``.

    Returns:
        The rewritten text and the number of links removed.
    """
    text, labelled = CITATION_WITH_LABELLED_LINK.subn(r"[\1]", text)
    text, direct = CITATION_WITH_LINK.subn(r"[\1]", text)
    stripped = labelled + direct
    if stripped:
        logger.debug("Stripped %d link(s) trailing citation markers", stripped)
    return text, stripped
