"""Pydantic input models for citation tools.

This module defines input models for:
- Listing the citations of a note
- Converting citations to hex footnotes
- Normalizing footnote definition lines
- Stripping links glued to citation markers
- Generating a fresh hex footnote marker
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cite_wide.constants import MAX_HEX_LENGTH, MIN_HEX_LENGTH
from cite_wide.core.citation_operations import normalize_citation_number

from .base import BaseNoteInput

HEX_ID_PATTERN = re.compile(rf"^[0-9a-f]{{{MIN_HEX_LENGTH},{MAX_HEX_LENGTH}}}$")


class FindCitationsInput(BaseNoteInput):
    """Input model for find_citations_obsidian_note tool.

    Examples:
        >>> FindCitationsInput(title="Research/Perplexity answer")
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"title": "Research/Perplexity answer", "vault": None},
            ]
        }


class ConvertCitationsInput(BaseNoteInput):
    """Input model for convert_citations_obsidian_note tool.

    Without ``target_number`` every citation group is converted. ``hex_id``
    and ``match_occurrence_index`` narrow a single-group conversion and are
    rejected when no target is given.

    Examples:
        >>> ConvertCitationsInput(title="Essay")
        >>> ConvertCitationsInput(title="Essay", target_number="3", match_occurrence_index=0)
    """

    target_number: Optional[str] = Field(
        None,
        description=(
            "Citation number to convert, e.g. '3'. '[3]' and '[^3]' are accepted. "
            "Omit to convert every citation in the note."
        ),
        examples=["3", "[^12]"]
    )

    hex_id: Optional[str] = Field(
        None,
        description=(
            f"Lowercase hex identifier ({MIN_HEX_LENGTH}-{MAX_HEX_LENGTH} chars) to use "
            "instead of a random one. Requires target_number."
        ),
        examples=["3fa9c1"]
    )

    match_occurrence_index: Optional[int] = Field(
        None,
        ge=0,
        description=(
            "Convert only this occurrence (0-based, as listed by "
            "find_citations_obsidian_note). Requires target_number."
        )
    )

    group_by_url: Optional[bool] = Field(
        None,
        description=(
            "Share one hex id between citations pointing at the same URL, "
            "reusing ids already defined in the note. Omit to use the configured default."
        )
    )

    @field_validator('target_number')
    @classmethod
    def validate_target_number(cls, v: Optional[str]) -> Optional[str]:
        """Normalize ``[3]``/``[^3]`` to ``3`` and require digits."""
        if v is None:
            return None
        cleaned = normalize_citation_number(v)
        if not cleaned.isdigit():
            raise ValueError(
                "Citation number must be digits such as '3' (brackets are optional). "
                f"Invalid value: '{v}'"
            )
        return cleaned

    @field_validator('hex_id')
    @classmethod
    def validate_hex_id(cls, v: Optional[str]) -> Optional[str]:
        """Require a lowercase hex id that could not be mistaken for a number."""
        if v is None:
            return None
        cleaned = v.strip().lower()
        if not HEX_ID_PATTERN.match(cleaned):
            raise ValueError(
                f"hex_id must be {MIN_HEX_LENGTH}-{MAX_HEX_LENGTH} hexadecimal characters. "
                f"Invalid value: '{v}'"
            )
        if cleaned.isdigit():
            raise ValueError(
                "hex_id must contain at least one letter a-f; "
                "an all-digit id would be read back as a numeric citation."
            )
        return cleaned

    @model_validator(mode="after")
    def require_target_for_narrowing(self) -> "ConvertCitationsInput":
        if self.target_number is None and (
            self.hex_id is not None or self.match_occurrence_index is not None
        ):
            raise ValueError("hex_id and match_occurrence_index require target_number.")
        return self

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"title": "Research/Perplexity answer", "vault": None},
                {
                    "title": "Drafts/Essay",
                    "target_number": "3",
                    "hex_id": "3fa9c1",
                    "match_occurrence_index": 0,
                    "vault": "work"
                }
            ]
        }


class NormalizeFootnotesInput(BaseNoteInput):
    """Input model for normalize_footnotes_obsidian_note tool."""


class StripCitationLinksInput(BaseNoteInput):
    """Input model for strip_citation_links_obsidian_note tool."""


class GenerateHexCitationInput(BaseModel):
    """Input model for generate_hex_citation tool.

    Examples:
        >>> GenerateHexCitationInput()
        >>> GenerateHexCitationInput(length=8)
    """

    length: Optional[int] = Field(
        None,
        ge=MIN_HEX_LENGTH,
        le=MAX_HEX_LENGTH,
        description="Identifier length. Omit to use the configured default (6)."
    )
