"""Base Pydantic model for note-scoped tool input validation.

Every citation tool works on a single note, so all note-related input models
inherit the ``title``/``vault`` fields and their validation from
:class:`BaseNoteInput`.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class BaseNoteInput(BaseModel):
    """Base model for note operations with common validation."""

    title: str = Field(
        min_length=1,
        description=(
            "Note identifier (path without .md extension). "
            "Examples: 'Research/Perplexity answer', 'Drafts/Essay'. "
            "Forward slashes for folders, case-sensitive."
        ),
        examples=["Research/Perplexity answer", "Drafts/Essay", "README"]
    )

    vault: Optional[str] = Field(
        None,
        description=(
            "Vault name (omit to use active vault). "
            "Use list_vaults() to discover available vaults."
        )
    )

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate the note title and strip an optional ``.md`` suffix.

        Raises:
            ValueError: If the title is empty, absolute, or contains ``.``/``..``
                path segments.
        """
        cleaned = v.strip()

        if not cleaned:
            raise ValueError(
                "Note title cannot be empty. "
                "Provide a valid note identifier like 'Research/Perplexity answer'."
            )

        parts = cleaned.split("/")
        if any(part in {".", ".."} for part in parts):
            raise ValueError(
                "Note title cannot contain '.' or '..' path segments. "
                f"Invalid title: '{cleaned}'"
            )

        if cleaned.startswith("/"):
            raise ValueError(
                "Note title must be a relative path within the vault. "
                "Do not start with '/'. "
                f"Invalid title: '{cleaned}'"
            )

        if cleaned.lower().endswith(".md"):
            cleaned = cleaned[:-3]

        if not cleaned:
            raise ValueError("Note title cannot be just '.md'. Provide a valid note name.")

        return cleaned

    @field_validator('vault')
    @classmethod
    def validate_vault(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank vault names; strip surrounding whitespace."""
        if v is not None and not v.strip():
            raise ValueError(
                "Vault name cannot be empty. "
                "Either omit the vault parameter to use the active vault, "
                "or provide a valid vault name from list_vaults()."
            )

        return v.strip() if v else None
