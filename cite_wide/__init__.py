"""cite-wide

Citation normalization for Obsidian notes: numbered, footnote and
Perplexity-style citations become collision-resistant hex footnotes.
Served to MCP clients by :mod:`cite_wide.server`.
"""

from cite_wide.data_models import (
    CitationGroup,
    CitationKind,
    CitationReference,
    ConversionResult,
    VaultMetadata,
    VaultConfiguration,
)
from cite_wide.core.citation_operations import (
    CitationNormalizer,
    convert_citations,
    discover_citations,
)
from cite_wide.core.hex_ids import generate_hex_id

__version__ = "0.3.0"
__all__ = [
    "CitationGroup",
    "CitationKind",
    "CitationReference",
    "ConversionResult",
    "VaultMetadata",
    "VaultConfiguration",
    "CitationNormalizer",
    "convert_citations",
    "discover_citations",
    "generate_hex_id",
]
