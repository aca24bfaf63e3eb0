"""Custom exceptions for the limit package."""


class LimitError(Exception):
    """Base class for limit exceptions.

    All custom exceptions inherit from this class so callers can catch
    every failure raised by this package with a single ``except`` clause.
    """

    def __init__(self, message: str = "Limit error"):
        self.message = message
        super().__init__(message)


class InvalidConfigurationError(LimitError, ValueError):
    """Raised when a Cooldown or RateLimiter is constructed with bad settings.

    Covers an empty prefix and non-positive durations or token counts.
    """

    def __init__(self, field: str, value: object, detail: str | None = None):
        self.field = field
        self.value = value
        message = detail or f"Invalid value for {field}: {value!r}"
        super().__init__(message)


class StorageError(LimitError):
    """Raised when the persistence backend fails to read or write a key."""

    def __init__(self, operation: str, key: str, detail: str | None = None):
        self.operation = operation
        self.key = key
        message = f"Storage {operation} failed for key {key!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class SerializationError(LimitError):
    """Raised when stored bytes cannot be decoded into the expected type."""

    def __init__(self, key: str, expected: str, detail: str | None = None):
        self.key = key
        self.expected = expected
        message = f"Cannot decode value at {key!r} as {expected}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
