"""
Exception hierarchy for the state import core.
"""


class ImportCoreError(Exception):
    """Base class for all errors raised by the import core"""


class ConversionError(ImportCoreError):
    """A structured value could not be converted to or from plain Python"""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class ListUnificationError(ImportCoreError):
    """List elements that should share a schema are structurally incompatible"""


class RefreshError(ImportCoreError):
    """A resource could not be refreshed or has no refreshed state"""


class FilterParseError(ImportCoreError, ValueError):
    """A filter expression is malformed"""
