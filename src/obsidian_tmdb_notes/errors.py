"""Error types raised while searching TMDB and writing notes."""

from __future__ import annotations


class TmdbNotesError(Exception):
    """Base class for user-facing failures.

    The message is what gets shown to the user; the underlying cause is
    chained with ``raise ... from`` and logged where it is caught.
    """


class ValidationError(TmdbNotesError, ValueError):
    """Raised before any I/O when the input cannot be used (e.g. empty query)."""


class NetworkError(TmdbNotesError, RuntimeError):
    """Raised when the search request fails or returns an unusable body."""


class EmptyResultError(TmdbNotesError):
    """Raised when a well-formed search response contains no items."""


class WriteError(TmdbNotesError, OSError):
    """Raised when the note cannot be created in the vault."""


class ConfigurationError(TmdbNotesError, ValueError):
    """Raised when configuration or settings are invalid."""
