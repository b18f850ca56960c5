"""FastMCP server initialization and tool registration."""

import logging
from mcp.server.fastmcp import FastMCP

from cite_wide.constants import LOG_LEVEL

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("cite_wide")


def run_server():
    """Start the MCP server with stdio transport."""
    logging.basicConfig(level=LOG_LEVEL)

    # Importing the tool modules registers their @mcp.tool() functions
    from cite_wide import tools  # noqa: F401

    logger.info("Starting cite-wide MCP server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
