"""Read/convert/write cycles over documents and vault notes.

The citation engine only works on strings. Everything here is the glue that
fetches the full text of a document, hands it to the engine and writes the
full result back, as one read and at most one write per operation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from cite_wide.core.citation_operations import CitationNormalizer
from cite_wide.core.footnote_operations import normalize_reference_sections, strip_citation_links
from cite_wide.core.vault_operations import (
    ensure_vault_ready,
    note_display_name,
    resolve_note_path,
)
from cite_wide.data_models import ConversionResult, VaultMetadata

logger = logging.getLogger(__name__)


# ==============================================================================
# DOCUMENTS
# ==============================================================================


class TextDocument(Protocol):
    """Anything whose full text can be read and replaced."""

    def get_document_text(self) -> str: ...

    def set_document_text(self, text: str) -> None: ...


class InMemoryDocument:
    """A document backed by a plain string."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.writes = 0

    def get_document_text(self) -> str:
        return self.text

    def set_document_text(self, text: str) -> None:
        self.text = text
        self.writes += 1


class NoteDocument:
    """A markdown note inside a vault.

    Raises:
        FileNotFoundError: If the vault is inaccessible or the note is missing.
        ValueError: If ``title`` resolves outside the vault.
    """

    def __init__(self, vault: VaultMetadata, title: str) -> None:
        ensure_vault_ready(vault)
        self.vault = vault
        self.path: Path = resolve_note_path(vault, title)
        if not self.path.is_file():
            raise FileNotFoundError(
                f"Note '{note_display_name(vault, self.path)}' not found in vault '{vault.name}'."
            )

    @property
    def name(self) -> str:
        return note_display_name(self.vault, self.path)

    def get_document_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(
                f"Note '{self.name}' is not UTF-8 encoded and cannot be processed."
            ) from exc

    def set_document_text(self, text: str) -> None:
        self.path.write_text(text, encoding="utf-8")

    def as_payload(self) -> dict[str, Any]:
        return {"vault": self.vault.name, "note": self.name, "path": str(self.path)}


def list_document_citations(
    document: TextDocument,
    normalizer: Optional[CitationNormalizer] = None,
) -> list[dict[str, Any]]:
    """Discover citations in a document and return them as payload dicts."""
    normalizer = normalizer or CitationNormalizer()
    groups = normalizer.discover(document.get_document_text())
    return [group.as_payload() for group in groups]


def convert_document(
    document: TextDocument,
    target_number: Optional[Union[str, int]] = None,
    hex_id: Optional[str] = None,
    match_occurrence_index: Optional[int] = None,
    normalizer: Optional[CitationNormalizer] = None,
    group_by_url: Optional[bool] = None,
) -> ConversionResult:
    """Convert citations in a document, writing back only when something changed."""
    normalizer = normalizer or CitationNormalizer()
    result = normalizer.convert(
        document.get_document_text(),
        target_number,
        hex_id,
        match_occurrence_index,
        group_by_url=group_by_url,
    )
    if result.changed:
        document.set_document_text(result.content)
    return result


# ==============================================================================
# NOTE OPERATIONS
# ==============================================================================


def find_note_citations(
    vault: VaultMetadata,
    title: str,
    normalizer: Optional[CitationNormalizer] = None,
) -> dict[str, Any]:
    """List the citation groups of a note.

    Returns:
        A dictionary with vault, note, path, groups, and status.
    """
    document = NoteDocument(vault, title)
    groups = list_document_citations(document, normalizer)
    logger.info(
        "Found %d citation group(s) in note '%s' (vault '%s')",
        len(groups),
        document.name,
        vault.name,
    )
    return {
        **document.as_payload(),
        "groups": groups,
        "status": "found" if groups else "no_citations",
    }


def convert_note_citations(
    vault: VaultMetadata,
    title: str,
    target_number: Optional[Union[str, int]] = None,
    hex_id: Optional[str] = None,
    match_occurrence_index: Optional[int] = None,
    normalizer: Optional[CitationNormalizer] = None,
    group_by_url: Optional[bool] = None,
) -> dict[str, Any]:
    """Convert a note's citations to hex footnotes and save the note.

    Returns:
        A dictionary with vault, note, path, changed, citations_converted,
        hex_ids, and status (``"converted"`` or ``"unchanged"``).
    """
    document = NoteDocument(vault, title)
    result = convert_document(
        document,
        target_number=target_number,
        hex_id=hex_id,
        match_occurrence_index=match_occurrence_index,
        normalizer=normalizer,
        group_by_url=group_by_url,
    )
    if result.changed:
        logger.info(
            "Converted %d citation(s) in note '%s' (vault '%s')",
            result.citations_converted,
            document.name,
            vault.name,
        )
    else:
        logger.info(
            "No citations converted in note '%s' (vault '%s', target=%s)",
            document.name,
            vault.name,
            target_number,
        )
    return {
        **document.as_payload(),
        **result.as_payload(),
        "status": "converted" if result.changed else "unchanged",
    }


def normalize_note_footnotes(vault: VaultMetadata, title: str) -> dict[str, Any]:
    """Normalize definition lines in a note's references/footnotes sections."""
    document = NoteDocument(vault, title)
    text, changed = normalize_reference_sections(document.get_document_text())
    if changed:
        document.set_document_text(text)
        logger.info("Normalized %d footnote definition(s) in note '%s'", changed, document.name)
    return {
        **document.as_payload(),
        "lines_changed": changed,
        "status": "normalized" if changed else "unchanged",
    }


def strip_note_citation_links(vault: VaultMetadata, title: str) -> dict[str, Any]:
    """Remove links glued to citation markers (``[1](url)`` -> ``[1]``) in a note."""
    document = NoteDocument(vault, title)
    text, stripped = strip_citation_links(document.get_document_text())
    if stripped:
        document.set_document_text(text)
        logger.info("Stripped %d citation link(s) in note '%s'", stripped, document.name)
    return {
        **document.as_payload(),
        "links_stripped": stripped,
        "status": "stripped" if stripped else "unchanged",
    }
