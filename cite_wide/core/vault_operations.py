"""Vault path resolution and sandboxing."""

from pathlib import Path

from cite_wide.data_models import VaultMetadata


def ensure_vault_ready(vault: VaultMetadata) -> None:
    """Ensure the target vault directory is accessible before touching notes.

    Raises:
        FileNotFoundError: If the vault path does not exist or is not a directory.
    """
    if not vault.path.is_dir():
        raise FileNotFoundError(f"Vault '{vault.name}' is not accessible at {vault.path}")


def construct_note_path(identifier: str) -> Path:
    """Build the relative path of a note from a pre-validated identifier.

    Validation (empty, ``.md`` suffix, traversal, absolute paths) happens in the
    pydantic input models; this only appends the extension.

    Examples:
        >>> construct_note_path("Research/Perplexity answer")
        PosixPath('Research/Perplexity answer.md')
    """
    parts = identifier.split("/")
    leaf_with_extension = f"{parts[-1]}.md"
    if len(parts) == 1:
        return Path(leaf_with_extension)
    return Path(*parts[:-1]) / leaf_with_extension


def resolve_note_path(vault: VaultMetadata, title: str) -> Path:
    """Resolve a note title to an absolute path inside ``vault``.

    Raises:
        ValueError: If the resolved path escapes the vault root.
    """
    relative = construct_note_path(title)
    candidate = (vault.path / relative).resolve(strict=False)
    vault_root = vault.path.resolve(strict=False)

    # Filesystem-level check, symlinks included
    if not candidate.is_relative_to(vault_root):
        raise ValueError("Note path escapes the configured vault.")

    return candidate


def note_display_name(vault: VaultMetadata, path: Path) -> str:
    """Forward-slash note name relative to the vault, without extension."""
    relative = path.relative_to(vault.path.resolve(strict=False))
    return str(relative.with_suffix("")).replace("\\", "/")
