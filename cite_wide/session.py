"""Session state management for active vault selection."""

from typing import Dict, Optional
from mcp.server.fastmcp import Context

from cite_wide.config import get_vault_configuration
from cite_wide.data_models import VaultMetadata

# Session state storage
_ACTIVE_VAULTS: Dict[int, str] = {}


def get_session_key(ctx: Context) -> int:
    """Stable per-session key derived from the session object identity."""
    return id(ctx.session)


def set_active_vault(ctx: Context, vault_name: str) -> VaultMetadata:
    """Set the active vault for a client session.

    Raises:
        ValueError: If ``vault_name`` is not present in the configuration.
    """
    metadata = get_vault_configuration().get(vault_name)
    _ACTIVE_VAULTS[get_session_key(ctx)] = metadata.name
    return metadata


def get_active_vault(ctx: Context) -> VaultMetadata:
    """Retrieve the active vault for a session, falling back to the default."""
    configuration = get_vault_configuration()
    vault_name = _ACTIVE_VAULTS.get(get_session_key(ctx), configuration.default_vault)
    return configuration.get(vault_name)


def resolve_vault(vault: Optional[str], ctx: Optional[Context] = None) -> VaultMetadata:
    """Resolve which vault an operation should use.

    An explicit ``vault`` wins, then the session's active vault, then the
    configured default.

    Raises:
        ValueError: If the supplied ``vault`` name is not recognized.
    """
    configuration = get_vault_configuration()
    if vault:
        return configuration.get(vault)

    if ctx is not None:
        return get_active_vault(ctx)

    return configuration.get(configuration.default_vault)
