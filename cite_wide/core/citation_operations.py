"""Citation discovery and conversion to hex-coded footnotes.

A document may cite its sources in several hand-written or tool-generated
forms: ``[1]``, ``[^1]``, Perplexity-style listings such as
``1. [https://example.com]`` and numbered items under a ``References``
heading. :class:`CitationNormalizer` discovers them, groups them by citation
number and rewrites every occurrence of a group to one random hex footnote
marker (``[^3fa9c1]``), appending ``[^3fa9c1]: <url>`` to the document's
footnotes section.

Conversion is idempotent: hex markers never match the discovery patterns and
a definition line that already exists is not appended again.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from cite_wide.constants import DEFAULT_HEX_LENGTH
from cite_wide.core.footnote_operations import (
    append_footnote_definition,
    clean_url,
    extract_source,
    reference_sections,
)
from cite_wide.core.hex_ids import HexIdAllocator, HexIdGenerator, generate_hex_id
from cite_wide.data_models import (
    CitationGroup,
    CitationKind,
    CitationReference,
    ConversionResult,
)
from cite_wide.exceptions import CitationError, MalformedPatternError

logger = logging.getLogger(__name__)

# 1. [https://...]   1. [title](https://...)   1. https://...
PERPLEXITY_PATTERN = re.compile(
    r"^(?P<number>\d+)\.\s+"
    r"(?:\[[^\]]*\]\((?P<linked>[^)\s]+)\)"
    r"|\[(?P<bracketed>https?://[^\]\s]+)\]"
    r"|(?P<bare>https?://\S+))"
)

# 1. Source text   1) Source text   (inside a references-style section)
LISTING_PATTERN = re.compile(r"^(?P<number>\d+)[.)][ \t]+\S.*?(?=[ \t]*\r?$)")

FOOTNOTE_PATTERN = re.compile(r"\[\^(?P<number>\d+)\]")
NUMBERED_PATTERN = re.compile(r"\[(?P<number>\d+)\]")

# Text following a marker that turns it into a definition: "[^1]: source"
DEFINITION_TAIL_PATTERN = re.compile(r"^:[ \t]*(?P<body>\S.*)$")

# An unclosed "](" before a position means we are inside a link destination
OPEN_LINK_DESTINATION = re.compile(r"\]\([^)]*$")
# "...](": the bracket we are in closes into a link, so we are in its text
CLOSES_INTO_LINK = re.compile(r"^[^\[\]]*\]\(")

EXISTING_DEFINITION_PATTERN = re.compile(
    r"^[ \t]*\[\^(?P<id>[0-9a-f]+)\]:[ \t]*(?P<url>\S.*?)[ \t]*\r?$", re.MULTILINE
)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def normalize_citation_number(value: Union[str, int]) -> str:
    """Turn ``3``, ``"3"``, ``"[3]"`` or ``"[^3]"`` into the grouping key ``"3"``."""
    return str(value).strip().strip("[]").lstrip("^").strip()


def _inside_link(line: str, start: int, end: int) -> bool:
    """True when the bracket span ``line[start:end]`` belongs to a markdown link."""
    if line[end : end + 1] == "(":
        return True
    if OPEN_LINK_DESTINATION.search(line[:start]):
        return True
    if "[" in line[:start] and CLOSES_INTO_LINK.match(line[end:]):
        return True
    return False


def _definition_source(line: str, start: int, end: int) -> Optional[str]:
    """Source text when the marker at ``line[start:end]`` opens a definition."""
    tail = DEFINITION_TAIL_PATTERN.match(line[end:])
    if tail is None:
        return None
    return extract_source(tail.group("body"))


def existing_hex_definitions(text: str) -> dict[str, str]:
    """Map each URL already defined by a hex footnote to its id (first wins)."""
    definitions: dict[str, str] = {}
    for match in EXISTING_DEFINITION_PATTERN.finditer(text):
        hex_id = match.group("id")
        if hex_id.isdigit():
            continue
        definitions.setdefault(match.group("url"), hex_id)
    return definitions


# ==============================================================================
# NORMALIZER
# ==============================================================================


class CitationNormalizer:
    """Discovers citation markers and rewrites them to hex footnotes.

    Args:
        hex_id_generator: Callable returning a random hex string of the requested
            length. Defaults to :func:`generate_hex_id`; tests inject a
            deterministic sequence.
        hex_length: Length of generated identifiers.
        group_by_url: When true, groups that resolve to the same URL share one
            identifier, including identifiers already defined in the document.
    """

    def __init__(
        self,
        hex_id_generator: HexIdGenerator = generate_hex_id,
        hex_length: int = DEFAULT_HEX_LENGTH,
        group_by_url: bool = False,
    ) -> None:
        self.hex_id_generator = hex_id_generator
        self.hex_length = hex_length
        self.group_by_url = group_by_url

    # --------------------------------------------------------------------------
    # Discovery
    # --------------------------------------------------------------------------

    def discover(self, text: str) -> list[CitationGroup]:
        """Find every citation reference and group them by number.

        Lines are scanned top to bottom; within a line, references are ordered
        by column. Groups are returned in the order their number first appears.
        """
        sections = reference_sections(text)
        groups: dict[str, CitationGroup] = {}
        offset = 0
        for line_index, line in enumerate(text.split("\n")):
            in_references = any(start <= offset < end for start, end in sections)
            for reference in self._scan_line(line, line_index, offset, in_references):
                groups.setdefault(reference.number, CitationGroup(number=reference.number)).add(reference)
            offset += len(line) + 1

        logger.debug(
            "Discovered %d citation group(s) with %d reference(s)",
            len(groups),
            sum(len(group.references) for group in groups.values()),
        )
        return list(groups.values())

    def _scan_line(
        self,
        line: str,
        line_index: int,
        line_offset: int,
        in_references: bool,
    ) -> list[CitationReference]:
        found: list[CitationReference] = []

        def record(kind: CitationKind, number: str, start: int, raw: str, url: Optional[str]) -> None:
            found.append(
                CitationReference(
                    kind=kind,
                    number=number,
                    raw_text=raw,
                    offset=line_offset + start,
                    line_index=line_index,
                    line_text=line,
                    associated_url=url or None,
                )
            )

        scan_from = 0
        perplexity = PERPLEXITY_PATTERN.match(line)
        if perplexity:
            url = perplexity.group("linked") or perplexity.group("bracketed") or perplexity.group("bare")
            record(CitationKind.PERPLEXITY, perplexity.group("number"), 0, perplexity.group(0), clean_url(url))
            scan_from = perplexity.end()
        elif in_references:
            listing = LISTING_PATTERN.match(line)
            if listing:
                body = listing.group(0)[len(listing.group("number")) + 1 :]
                record(
                    CitationKind.REFERENCE_LISTING,
                    listing.group("number"),
                    0,
                    listing.group(0),
                    extract_source(body),
                )
                return found

        for match in FOOTNOTE_PATTERN.finditer(line, scan_from):
            source = _definition_source(line, match.start(), match.end())
            record(CitationKind.FOOTNOTE, match.group("number"), match.start(), match.group(0), source)

        for match in NUMBERED_PATTERN.finditer(line, scan_from):
            if _inside_link(line, match.start(), match.end()):
                continue
            source = None
            if not line[: match.start()].strip():
                # "[1]: https://..." at the start of a line is a link definition
                source = _definition_source(line, match.start(), match.end())
            record(CitationKind.NUMBERED, match.group("number"), match.start(), match.group(0), source)

        found.sort(key=lambda reference: reference.offset)
        return found

    # --------------------------------------------------------------------------
    # Conversion
    # --------------------------------------------------------------------------

    def convert(
        self,
        text: str,
        target_number: Optional[Union[str, int]] = None,
        hex_id: Optional[str] = None,
        match_occurrence_index: Optional[int] = None,
        *,
        group_by_url: Optional[bool] = None,
    ) -> ConversionResult:
        """Rewrite citations to hex footnotes.

        Args:
            text: Full document text.
            target_number: Only convert the group with this citation number.
                Omit to convert every group.
            hex_id: Identifier to use for the target group instead of a random
                one. Ignored without ``target_number``.
            match_occurrence_index: Convert only this occurrence (0-based, in
                discovery order) of the target group. Ignored without
                ``target_number``; out of range converts nothing.
            group_by_url: Override the normalizer's URL grouping for this call.

        Returns:
            A :class:`ConversionResult`. This method does not raise: internal
            failures yield the original text with ``changed=False``.
        """
        if target_number is None and (hex_id is not None or match_occurrence_index is not None):
            logger.warning("hex_id and match_occurrence_index require a target number; ignoring them")
            hex_id = None
            match_occurrence_index = None

        target = normalize_citation_number(target_number) if target_number is not None else None
        by_url = self.group_by_url if group_by_url is None else group_by_url

        try:
            return self._convert(text, target, hex_id, match_occurrence_index, by_url)
        except (CitationError, re.error, IndexError, ValueError) as exc:
            logger.warning("Citation conversion aborted, document left unchanged: %s", exc)
            return ConversionResult.unchanged(text)

    def _convert(
        self,
        text: str,
        target: Optional[str],
        hex_id: Optional[str],
        occurrence: Optional[int],
        group_by_url: bool,
    ) -> ConversionResult:
        groups = self.discover(text)
        if target is not None:
            groups = [group for group in groups if group.number == target]
        if not groups:
            logger.debug("No citations to convert (target=%s)", target)
            return ConversionResult.unchanged(text)

        allocator = HexIdAllocator(
            text,
            generator=self.hex_id_generator,
            length=self.hex_length,
            group_by_url=group_by_url,
            existing=existing_hex_definitions(text) if group_by_url else None,
        )

        edits: list[tuple[CitationReference, str]] = []
        definitions: list[tuple[str, str]] = []
        hex_ids: dict[str, str] = {}
        for group in groups:
            selected = group.references
            if occurrence is not None:
                selected = [selected[occurrence]] if 0 <= occurrence < len(selected) else []
            if not selected:
                continue

            if hex_id:
                group_hex = allocator.reserve(group.number, hex_id)
            else:
                group_hex = allocator.for_group(group.number, group.url)
            hex_ids[group.number] = group_hex
            edits.extend((reference, group_hex) for reference in selected)
            if group.url and (group_hex, group.url) not in definitions:
                definitions.append((group_hex, group.url))

        if not edits:
            return ConversionResult.unchanged(text)

        content = self._apply_edits(text, edits)
        for group_hex, url in definitions:
            content, _ = append_footnote_definition(content, group_hex, url)

        return ConversionResult(
            content=content,
            changed=True,
            citations_converted=len(edits),
            hex_ids=hex_ids,
        )

    def _apply_edits(self, text: str, edits: list[tuple[CitationReference, str]]) -> str:
        """Apply every rewrite back to front so recorded offsets stay valid."""
        boundary = len(text)
        for reference, hex_id in sorted(edits, key=lambda edit: edit[0].offset, reverse=True):
            if reference.end > boundary:
                raise MalformedPatternError(
                    f"Citation {reference.raw_text!r} at offset {reference.offset} overlaps another rewrite."
                )
            if text[reference.offset : reference.end] != reference.raw_text:
                raise MalformedPatternError(
                    f"Expected {reference.raw_text!r} at offset {reference.offset}."
                )
            if reference.is_listing:
                text, boundary = _remove_listing(text, reference)
            else:
                text = _replace_marker(text, reference, hex_id)
                boundary = reference.offset
        return text


def _replace_marker(text: str, reference: CitationReference, hex_id: str) -> str:
    """Swap a marker for ``[^hex_id]``, padding it off from adjacent text."""
    before = text[: reference.offset]
    after = text[reference.end :]
    marker = f"[^{hex_id}]"
    if before and not before[-1].isspace():
        marker = " " + marker
    # No space between a definition marker and its colon
    if after and not after[0].isspace() and after[0] != ":":
        marker = marker + " "
    return before + marker + after


def _remove_listing(text: str, reference: CitationReference) -> tuple[str, int]:
    """Drop a source listing; its line goes too when nothing else is left on it.

    Returns:
        The updated text and the lowest offset touched.
    """
    start = reference.offset
    end = reference.end
    while end < len(text) and text[end] in " \t":
        end += 1

    line_end = text.find("\n", end)
    rest = text[end:] if line_end == -1 else text[end:line_end]
    if not rest.strip():
        if line_end != -1:
            end = line_end + 1
        else:
            end = len(text)
            if start > 0 and text[start - 1] == "\n":
                start -= 1
    return text[:start] + text[end:], start


# ==============================================================================
# MODULE-LEVEL API
# ==============================================================================

_DEFAULT_NORMALIZER = CitationNormalizer()


def discover_citations(text: str) -> list[CitationGroup]:
    """Discover citation groups with the default normalizer."""
    return _DEFAULT_NORMALIZER.discover(text)


def convert_citations(
    text: str,
    target_number: Optional[Union[str, int]] = None,
    hex_id: Optional[str] = None,
    match_occurrence_index: Optional[int] = None,
) -> ConversionResult:
    """Convert citations with the default normalizer."""
    return _DEFAULT_NORMALIZER.convert(text, target_number, hex_id, match_occurrence_index)
