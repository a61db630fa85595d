"""
Exception hierarchy for photo imports.

Per-file placement, path and upload problems are reported through result
objects; exceptions are reserved for conditions the caller must handle
differently.
"""


class PhotoImportError(Exception):
    """Base exception for all photoimport errors."""
    pass


class ConfigurationError(PhotoImportError):
    """Raised when the import cannot start with the given settings."""
    pass


class MetadataReadError(PhotoImportError):
    """Raised when a picture's container cannot be opened at all."""
    pass
