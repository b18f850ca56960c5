"""Data models for vault configuration and citation discovery results."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from cite_wide.constants import DEFAULT_HEX_LENGTH


@dataclass(frozen=True)
class VaultMetadata:
    """Normalized metadata describing an Obsidian vault."""

    name: str
    path: Path
    description: str
    exists: bool

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        return {
            "name": self.name,
            "path": str(self.path),
            "description": self.description,
            "exists": self.path.is_dir(),
        }


@dataclass(frozen=True)
class CitationSettings:
    """Tunables for the citation normalizer used by the tools."""

    hex_length: int = DEFAULT_HEX_LENGTH
    group_by_url: bool = False

    def as_payload(self) -> dict[str, Any]:
        return {"hex_length": self.hex_length, "group_by_url": self.group_by_url}


class VaultConfiguration:
    """Holds vault metadata, citation settings and default resolution helpers.

    Loaded once on first use from vaults.yaml.
    Provides vault lookup by name and payload serialization for MCP responses.
    """

    def __init__(
        self,
        default_vault: str,
        vaults: dict[str, VaultMetadata],
        citations: Optional[CitationSettings] = None,
    ) -> None:
        self.default_vault = default_vault
        self.vaults = vaults
        self.citations = citations or CitationSettings()

    def get(self, name: str) -> VaultMetadata:
        """Get vault metadata by name.

        Args:
            name: The name of the vault to retrieve.

        Returns:
            VaultMetadata for the requested vault.

        Raises:
            ValueError: If the vault name is not found in configuration.
        """
        try:
            return self.vaults[name]
        except KeyError as exc:
            available = ", ".join(sorted(self.vaults)) or "none"
            raise ValueError(f"Unknown vault '{name}' (available: {available})") from exc

    def as_payload(self) -> dict[str, Any]:
        """Return serializable configuration payload."""
        return {
            "default": self.default_vault,
            "vaults": [vault.as_payload() for vault in self.vaults.values()],
            "citations": self.citations.as_payload(),
        }


class CitationKind(str, Enum):
    """Textual form a citation marker was written in."""

    FOOTNOTE = "footnote"  # [^1]
    NUMBERED = "numbered"  # [1]
    PERPLEXITY = "perplexity"  # 1. [https://...]
    REFERENCE_LISTING = "reference_listing"  # 1. Some source, under a References heading


@dataclass(frozen=True)
class CitationReference:
    """One occurrence of a citation marker within a document."""

    kind: CitationKind
    number: str
    raw_text: str
    offset: int
    line_index: int
    line_text: str
    associated_url: Optional[str] = None

    @property
    def end(self) -> int:
        return self.offset + len(self.raw_text)

    @property
    def is_listing(self) -> bool:
        """True for source listings that are relocated instead of replaced."""
        return self.kind in (CitationKind.PERPLEXITY, CitationKind.REFERENCE_LISTING)

    def as_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "number": self.number,
            "raw_text": self.raw_text,
            "offset": self.offset,
            "line": self.line_index,
            "line_text": self.line_text,
            "url": self.associated_url,
        }


@dataclass
class CitationGroup:
    """All references sharing the same citation number.

    ``url`` is resolved once, from the first reference that supplies one, and
    applies to the whole group.
    """

    number: str
    references: list[CitationReference] = field(default_factory=list)
    url: Optional[str] = None

    def add(self, reference: CitationReference) -> None:
        self.references.append(reference)
        if self.url is None and reference.associated_url:
            self.url = reference.associated_url

    def as_payload(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "url": self.url,
            "occurrences": len(self.references),
            "references": [reference.as_payload() for reference in self.references],
        }


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion: rewritten text plus a change summary."""

    content: str
    changed: bool
    citations_converted: int
    hex_ids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def unchanged(cls, content: str) -> "ConversionResult":
        return cls(content=content, changed=False, citations_converted=0)

    def as_payload(self) -> dict[str, Any]:
        return {
            "changed": self.changed,
            "citations_converted": self.citations_converted,
            "hex_ids": dict(self.hex_ids),
        }
