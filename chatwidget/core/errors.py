from enum import Enum


class StoreError(Exception):
    """Raised when a read or write against the knowledge store fails."""


class StoreNotConfigured(StoreError):
    pass


class CompletionErrorKind(str, Enum):
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


class CompletionError(Exception):
    """Raised by the completion adapter. `kind` tells callers how to answer the user."""

    def __init__(self, kind: CompletionErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
