"""Citation MCP tools.

This module provides MCP tool wrappers for citation operations:
- List the citation groups of a note
- Convert citations to hex footnotes
- Normalize footnote definition lines
- Strip links glued to citation markers
- Generate a fresh hex footnote marker

All note tools delegate to core operations in
cite_wide.core.document_operations.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from cite_wide.server import mcp
from cite_wide.config import get_vault_configuration
from cite_wide.session import resolve_vault
from cite_wide.models import (
    FindCitationsInput,
    ConvertCitationsInput,
    NormalizeFootnotesInput,
    StripCitationLinksInput,
    GenerateHexCitationInput,
)
from cite_wide.core.citation_operations import CitationNormalizer
from cite_wide.core.hex_ids import new_hex_marker
from cite_wide.core.document_operations import (
    find_note_citations,
    convert_note_citations,
    normalize_note_footnotes,
    strip_note_citation_links,
)


def _configured_normalizer() -> CitationNormalizer:
    settings = get_vault_configuration().citations
    return CitationNormalizer(hex_length=settings.hex_length, group_by_url=settings.group_by_url)


# ==============================================================================
# DISCOVERY AND CONVERSION
# ==============================================================================

@mcp.tool()
async def find_citations_obsidian_note(
    input: FindCitationsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List the citations of a note, grouped by citation number.

    Recognizes [1], [^1], Perplexity-style source lines ("1. [https://...]")
    and numbered items under a References/Footnotes/Sources heading.

    Args:
        input (FindCitationsInput): Validated input containing:
            - title (str): Note identifier
            - vault (str, optional): Target vault (omit to use active vault)

    Returns:
        {
            "vault": str, "note": str, "path": str,
            "groups": [{"number": str, "url": str | None, "occurrences": int,
                        "references": [{"kind": str, "raw_text": str, "line": int, ...}]}],
            "status": "found" | "no_citations"
        }

    Examples:
        - Use when: Choosing which citation (and which occurrence) to convert
        - Follow-up: convert_citations_obsidian_note() with target_number

    Error Handling:
        - Note not found → FileNotFoundError
    """
    metadata = resolve_vault(input.vault, ctx)
    return find_note_citations(metadata, input.title, _configured_normalizer())


@mcp.tool()
async def convert_citations_obsidian_note(
    input: ConvertCitationsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Convert numbered citations to random hex footnotes and save the note.

    Every occurrence of a citation number gets the same [^hexid] marker, and
    the source URL is written once as "[^hexid]: url" under "# Footnotes"
    (created when missing). Running it again is a no-op for converted citations.

    Args:
        input (ConvertCitationsInput): Validated input containing:
            - title (str): Note identifier
            - target_number (str, optional): Only convert this citation number
            - hex_id (str, optional): Use this id instead of a random one
            - match_occurrence_index (int, optional): Only convert this occurrence
            - group_by_url (bool, optional): Share ids between same-URL citations
            - vault (str, optional): Target vault (omit to use active vault)

    Returns:
        {
            "vault": str, "note": str, "path": str,
            "changed": bool, "citations_converted": int,
            "hex_ids": {number: hexid},
            "status": "converted" | "unchanged"
        }

    Error Handling:
        - ValidationError: bad target number or hex id, narrowing without target
        - Note not found → FileNotFoundError
        - No citations / unknown target → status "unchanged" (not an error)
    """
    metadata = resolve_vault(input.vault, ctx)
    return convert_note_citations(
        metadata,
        input.title,
        target_number=input.target_number,
        hex_id=input.hex_id,
        match_occurrence_index=input.match_occurrence_index,
        normalizer=_configured_normalizer(),
        group_by_url=input.group_by_url,
    )


# ==============================================================================
# CLEANUP
# ==============================================================================

@mcp.tool()
async def normalize_footnotes_obsidian_note(
    input: NormalizeFootnotesInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Add the missing colon to footnote definitions ("[^id] text" → "[^id]: text").

    Only lines inside References/Footnotes/Sources sections are touched.

    Returns:
        {"vault": str, "note": str, "path": str, "lines_changed": int,
         "status": "normalized" | "unchanged"}
    """
    metadata = resolve_vault(input.vault, ctx)
    return normalize_note_footnotes(metadata, input.title)


@mcp.tool()
async def strip_citation_links_obsidian_note(
    input: StripCitationLinksInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Collapse "[1](url)" and "[1][label](url)" to "[1]" so they can be converted.

    Returns:
        {"vault": str, "note": str, "path": str, "links_stripped": int,
         "status": "stripped" | "unchanged"}
    """
    metadata = resolve_vault(input.vault, ctx)
    return strip_note_citation_links(metadata, input.title)


@mcp.tool()
async def generate_hex_citation(
    input: GenerateHexCitationInput,
) -> dict[str, Any]:
    """Generate a fresh random footnote marker such as "[^3fa9c1]".

    Returns:
        {"marker": str, "hex_id": str}
    """
    length = input.length or get_vault_configuration().citations.hex_length
    marker = new_hex_marker(length)
    return {"marker": marker, "hex_id": marker[2:-1]}
