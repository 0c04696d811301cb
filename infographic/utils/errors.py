"""
Custom exceptions for the ARK infographic service.

Request handling, sprite acquisition, table loading and the offline
extraction pipeline all raise subclasses of ``InfographicError`` so callers
can tell client mistakes apart from degraded or fatal conditions.
"""

from typing import Any, Optional


class InfographicError(Exception):
    """Base exception for all infographic-specific errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Client Input Exceptions
# =============================================================================


class RequestError(InfographicError):
    """Invalid client input. Answered with a 400 response."""

    status_code = 400


class InvalidBodyError(RequestError):
    """Request body is not valid JSON."""

    def __init__(self, reason: Optional[str] = None) -> None:
        """Initialize with the parser's reason."""
        super().__init__("Invalid JSON body", {"reason": reason} if reason else None)


class MissingFieldError(RequestError):
    """A required request field is absent."""

    def __init__(self, field: str) -> None:
        """Initialize with the dotted field path."""
        super().__init__(f"Missing required field: {field}", {"field": field})
        self.field = field


class InvalidFieldError(RequestError):
    """A request field is present but has the wrong shape or value."""

    def __init__(self, field: str, reason: str) -> None:
        """Initialize with the dotted field path and a reason."""
        super().__init__(f"Invalid field {field}: {reason}", {"field": field})
        self.field = field


class UnknownSpeciesError(RequestError):
    """Species name is not present in the species table."""

    def __init__(self, species_name: str) -> None:
        """Initialize with species name."""
        super().__init__(f"Unknown species: {species_name}", {"species": species_name})
        self.species_name = species_name


class UnsupportedFormatError(RequestError):
    """Unsupported output format."""

    def __init__(self, format: str, supported: list[str]) -> None:
        """Initialize with format information."""
        message = f"Format '{format}' not supported. Supported formats: {', '.join(supported)}"
        super().__init__(message, {"format": format, "supported": supported})


# =============================================================================
# Sprite Exceptions
# =============================================================================


class SpriteError(InfographicError):
    """Base exception for sprite acquisition. Always recovered locally."""

    pass


class SpriteFetchError(SpriteError):
    """Sprite object store could not be read."""

    def __init__(self, key: str, reason: str) -> None:
        """Initialize with the object key."""
        super().__init__(f"Failed to fetch sprite '{key}': {reason}", {"key": key})


# =============================================================================
# Extraction Exceptions
# =============================================================================


class ExtractionError(InfographicError):
    """Base exception for the offline extraction pipeline."""

    pass


class UpstreamDocumentError(ExtractionError):
    """Upstream values document is missing or unparsable. Aborts extraction."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialize with the document path."""
        super().__init__(f"Cannot load upstream document '{path}': {reason}", {"path": path})


class MultiplierPresetError(ExtractionError):
    """Server multiplier preset is unavailable. Recovered with identity multipliers."""

    def __init__(self, preset: str, reason: str) -> None:
        """Initialize with preset name."""
        super().__init__(f"Multiplier preset '{preset}' unavailable: {reason}", {"preset": preset})
        self.preset = preset
        self.reason = reason


# =============================================================================
# Lookup Table Exceptions
# =============================================================================


class DataTableError(InfographicError):
    """Base exception for the generated lookup tables."""

    pass


class TableLoadError(DataTableError):
    """Generated table could not be read or validated."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialize with table path."""
        super().__init__(f"Failed to load table '{path}': {reason}", {"path": path})


class TableNotInitializedError(DataTableError):
    """Table used before initialize() completed."""

    def __init__(self, table: str) -> None:
        """Initialize with table name."""
        super().__init__(f"Table '{table}' used before initialization", {"table": table})


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(InfographicError):
    """Configuration error."""

    pass
