"""
Console Exceptions

Error taxonomy shared by the store client, the grid reconcilers and the
web layer:
- StoreError: the backend failed on read or write
- ValidationError: a record or request failed a precondition
- ScopeError: a required foreign scope (organization) is missing
- TranslationError: the machine translation provider failed

Separated to avoid circular imports between core, grid and translation.
"""


class ComaxError(Exception):
    """Base console error with optional code and details."""

    code_default = "error"

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code or self.code_default
        self.details = details or {}


class StoreError(ComaxError):
    """Raised when the resource store rejects or fails a request."""

    code_default = "store_error"


class ValidationError(ComaxError):
    """Raised when input fails validation.

    ``row`` is the 1-based row number of an import record and ``field`` the
    offending field name, when known.
    """

    code_default = "validation_error"

    def __init__(self, message: str, row: int = None, field: str = None,
                 code: str = None, details: dict = None):
        super().__init__(message, code=code, details=details)
        self.row = row
        self.field = field
        if row is not None:
            self.details.setdefault("row", row)
        if field is not None:
            self.details.setdefault("field", field)


class ScopeError(ComaxError):
    """Raised when an insert requires an organization scope that is absent."""

    code_default = "scope_missing"


class TranslationError(ComaxError):
    """Machine translation service error."""

    code_default = "translation_error"
