"""MCP tool definitions.

Importing this package registers every tool with the FastMCP server.
"""

from cite_wide.tools import vault_tools
from cite_wide.tools import citation_tools

__all__ = [
    "vault_tools",
    "citation_tools",
]
