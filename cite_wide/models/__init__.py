"""Pydantic input models for MCP tool validation.

Each model is the input schema of one tool, with field-level validation and
descriptive error messages surfaced to MCP clients.

Architecture:
- base: BaseNoteInput, shared title/vault validation
- citation_models: citation discovery, conversion and cleanup tools
- vault_models: vault management tools
"""

from .base import BaseNoteInput
from .citation_models import (
    FindCitationsInput,
    ConvertCitationsInput,
    NormalizeFootnotesInput,
    StripCitationLinksInput,
    GenerateHexCitationInput,
)
from .vault_models import (
    ListVaultsInput,
    SetActiveVaultInput,
)

__all__ = [
    "BaseNoteInput",
    "FindCitationsInput",
    "ConvertCitationsInput",
    "NormalizeFootnotesInput",
    "StripCitationLinksInput",
    "GenerateHexCitationInput",
    "ListVaultsInput",
    "SetActiveVaultInput",
]
