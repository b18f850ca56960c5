"""MCP tools for vault management."""

import logging
from typing import Any
from mcp.server.fastmcp import Context

from cite_wide.server import mcp
from cite_wide.models import ListVaultsInput, SetActiveVaultInput
from cite_wide.config import get_vault_configuration
from cite_wide.session import (
    set_active_vault as set_active_vault_session,
    get_active_vault,
    get_session_key,
)

logger = logging.getLogger(__name__)


@mcp.tool()
async def list_vaults(
    input: ListVaultsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List configured Obsidian vaults, the citation settings and session state.

    Args:
        input (ListVaultsInput): Validated input (no fields required)
        ctx (Context, optional): FastMCP context for session state

    Returns:
        {
            "default": str,
            "active": str | None,
            "vaults": [{"name": str, "path": str, "description": str, "exists": bool}],
            "citations": {"hex_length": int, "group_by_url": bool}
        }

    Error Handling:
        - Config file missing → Error with expected config path
        - Invalid config format → Error describing expected YAML structure
    """
    configuration = get_vault_configuration()
    active = None
    if ctx is not None:
        try:
            active = get_active_vault(ctx).name
        except ValueError:
            active = None

    return {**configuration.as_payload(), "active": active}


@mcp.tool()
async def set_active_vault(
    input: SetActiveVaultInput,
    ctx: Context,
) -> dict[str, Any]:
    """Set the active vault for this conversation session.

    Citation tools that omit the vault parameter will use the active vault.

    Args:
        input (SetActiveVaultInput): Validated input containing:
            - vault (str): Friendly vault name from the configuration file
        ctx (Context): FastMCP context for session state

    Returns:
        {"vault": str, "path": str, "status": "active"}

    Error Handling:
        - ValidationError: Empty vault name or only whitespace
        - Unknown vault → Error listing available vaults
    """
    metadata = set_active_vault_session(ctx, input.vault)
    logger.info("Active vault for session %s set to '%s'", get_session_key(ctx), metadata.name)
    return {
        "vault": metadata.name,
        "path": str(metadata.path),
        "status": "active",
    }
