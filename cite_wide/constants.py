"""Module-level constants for the cite-wide server."""

import os
from pathlib import Path

# Configuration
CONFIG_ENV_VAR = "CITE_WIDE_CONFIG"
CONFIG_PATH = Path(os.environ.get(CONFIG_ENV_VAR, Path(__file__).parent.parent / "vaults.yaml"))

# Hex identifiers
DEFAULT_HEX_LENGTH = 6
MIN_HEX_LENGTH = 4
MAX_HEX_LENGTH = 32
MAX_HEX_ATTEMPTS = 32

# Footnotes section
FOOTNOTES_HEADING = "# Footnotes"
REFERENCE_SECTION_TITLES = ("references", "footnotes", "sources")

# Logging
LOG_LEVEL = "INFO"
