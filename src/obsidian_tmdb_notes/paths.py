"""Utilities for working with vault paths safely."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError, WriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vault:
    """Container representing a vault root."""

    name: str
    root: Path


def parse_vault_path(raw: str) -> Vault:
    """Parse the configured vault root into a :class:`Vault`."""

    candidate = raw.strip()
    if not candidate:
        raise ConfigurationError("VAULT_PATH must be provided")
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        raise ConfigurationError(f"Vault path must be absolute: {candidate!r}")
    root = path.resolve(strict=False)
    return Vault(name=root.name or root.stem, root=root)


def ensure_in_vault(path: Path, vault: Vault) -> Path:
    """Ensure *path* is inside *vault* and return it resolved."""

    resolved = path.resolve(strict=False)
    try:
        resolved.relative_to(vault.root.resolve(strict=False))
    except ValueError:
        raise PermissionError(f"Path {resolved} is outside the vault") from None
    return resolved


def note_destination(notes_folder: str, file_name: str) -> str:
    """Join the configured folder and *file_name*; an empty folder means the vault root."""

    folder = notes_folder.strip().strip("/")
    return f"{folder}/{file_name}" if folder else file_name


def resolve_note_path(relative: str, vault: Vault) -> Path:
    """Resolve a vault-relative note path, refusing anything that escapes the vault."""

    if not relative:
        raise ValueError("Empty path provided")
    return ensure_in_vault(vault.root / relative, vault)


def create_note_file(vault: Vault, relative: str, content: str) -> Path:
    """Create a note at *relative* inside *vault*.

    The folder must already exist and the file must not. Both failures, and
    attempts to leave the vault, surface as :class:`WriteError`.
    """

    try:
        target = resolve_note_path(relative, vault)
        with target.open("x", encoding="utf-8") as handle:
            handle.write(content)
    except (OSError, ValueError) as exc:
        logger.error("Failed to create note %s: %s", relative, exc)
        raise WriteError("Erro ao criar a nota. Verifique se a pasta existe.") from exc
    return target
