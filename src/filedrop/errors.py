"""Error taxonomy for filedrop.

Every failure surfaced to a caller is a FiledropError carrying a ``kind``
string, so bridge layers can report a structured rejection without
inspecting exception classes.
"""


class FiledropError(Exception):
    """Base exception for filedrop errors."""

    kind = "FiledropError"


class ValidationError(FiledropError):
    """Caller supplied missing or malformed required input."""

    kind = "ValidationError"


class DecodingError(FiledropError):
    """Encoded payload could not be decoded into bytes."""

    kind = "DecodingError"


class StorageBrokerError(FiledropError):
    """The storage broker is unavailable or rejected a reservation."""

    kind = "StorageBrokerError"


class StorageIOError(FiledropError):
    """Writing the payload failed after a reservation or path was established."""

    kind = "IOError"


class StorageStateError(FiledropError):
    """Illegal storage entry state transition."""

    kind = "StorageStateError"


class ResolutionError(FiledropError):
    """A reference could not be translated into a shareable form."""

    kind = "ResolutionError"


class GrantError(FiledropError):
    """A read grant is invalid, expired, revoked, or misapplied."""

    kind = "GrantError"


class LaunchError(FiledropError):
    """No external viewer accepted the hand-off."""

    kind = "LaunchError"


def to_rejection(error: FiledropError) -> dict[str, str]:
    """Render an error as a structured rejection."""
    return {"error": error.kind, "message": str(error)}
