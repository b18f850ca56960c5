"""Configuration loading: vault registry and citation settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from cite_wide.constants import CONFIG_PATH, MAX_HEX_LENGTH, MIN_HEX_LENGTH
from cite_wide.data_models import CitationSettings, VaultConfiguration, VaultMetadata

logger = logging.getLogger(__name__)


def _load_citation_settings(section: Any) -> CitationSettings:
    """Validate the optional ``citations`` mapping."""
    if section is None:
        return CitationSettings()
    if not isinstance(section, dict):
        raise ValueError("'citations' must be a mapping when present")

    defaults = CitationSettings()
    hex_length = section.get("hex_length", defaults.hex_length)
    if (
        not isinstance(hex_length, int)
        or isinstance(hex_length, bool)
        or not MIN_HEX_LENGTH <= hex_length <= MAX_HEX_LENGTH
    ):
        raise ValueError(
            f"'citations.hex_length' must be an integer between {MIN_HEX_LENGTH} and {MAX_HEX_LENGTH}"
        )

    group_by_url = section.get("group_by_url", defaults.group_by_url)
    if not isinstance(group_by_url, bool):
        raise ValueError("'citations.group_by_url' must be true or false")

    return CitationSettings(hex_length=hex_length, group_by_url=group_by_url)


def load_vault_configuration(config_path: Path = CONFIG_PATH) -> VaultConfiguration:
    """Load and validate the configuration file.

    Args:
        config_path: Path to the YAML configuration file. Defaults to ``vaults.yaml``
            at the repository root, or ``$CITE_WIDE_CONFIG`` when set.

    Returns:
        A :class:`VaultConfiguration` with normalized vault metadata, the
        default vault name and the citation settings.

    Raises:
        FileNotFoundError: If the configuration file is missing.
        ValueError: If the file does not provide the expected structure
            (missing default, empty mapping, invalid entries, etc.).
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Vault configuration file not found at {config_path}")

    raw_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw_config, dict):
        raise ValueError("Vault configuration must be a YAML mapping")

    vaults_section = raw_config.get("vaults")
    if not isinstance(vaults_section, dict) or not vaults_section:
        raise ValueError("Vault configuration must include a non-empty 'vaults' mapping")

    processed: dict[str, VaultMetadata] = {}
    for name, entry in vaults_section.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Vault '{name}' must map to a dictionary of settings")

        raw_path = entry.get("path")
        if not isinstance(raw_path, str) or not raw_path.strip():
            raise ValueError(f"Vault '{name}' is missing a valid 'path' string")

        resolved_path = Path(raw_path).expanduser()
        try:
            resolved_path = resolved_path.resolve(strict=False)
        except RuntimeError:
            # resolve can raise on symlink loops; keep the expanded path
            pass

        processed[name] = VaultMetadata(
            name=name,
            path=resolved_path,
            description=(entry.get("description") or "").strip(),
            exists=resolved_path.is_dir(),
        )

    default_vault = raw_config.get("default")
    if not isinstance(default_vault, str) or default_vault not in processed:
        raise ValueError("Vault configuration must specify a 'default' vault present in the mapping")

    citations = _load_citation_settings(raw_config.get("citations"))
    logger.debug("Loaded %d vault(s) from %s", len(processed), config_path)
    return VaultConfiguration(default_vault=default_vault, vaults=processed, citations=citations)


@lru_cache(maxsize=1)
def get_vault_configuration() -> VaultConfiguration:
    """Return the configuration, loading it on first use."""
    return load_vault_configuration()
