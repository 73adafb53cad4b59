"""
Exceptions raised by the storage layer.

NotFoundError and InvalidTokenError are expected outcomes that callers use
for normal control flow. StorageError wraps database failures and is never
retried by the stores. ConfigError is raised once at startup.
"""


class StoreError(Exception):
    """Base exception for storage errors."""
    pass


class NotFoundError(StoreError):
    """Raised when no record exists for the given key."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} found for {key!r}")


class InvalidTokenError(StoreError):
    """Raised when a token is unknown, used, expired or superseded."""

    def __init__(self, message: str = "Token is invalid, used, expired or superseded"):
        super().__init__(message)


class StorageError(StoreError):
    """Raised for connectivity, constraint or serialization failures."""
    pass


class ConfigError(StoreError):
    """Aggregates every configuration problem found at startup."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(self._compose(self.errors))

    @staticmethod
    def _compose(errors: list[str]) -> str:
        if len(errors) == 1:
            return errors[0]
        return "\n".join(["multiple errors:", *errors])
