"""Engine error kinds."""


class EngagementError(Exception):
    """Base class for errors raised by the engagement engine."""


class InvalidInput(EngagementError):
    """Malformed caller input (rating value, limit, sample size)."""


class NotFound(EngagementError):
    """Book or user identity unknown to the store."""


class StorageError(EngagementError):
    """The backing store failed to read or write a document."""


class DispatchError(EngagementError):
    """The push provider rejected or failed to receive a batch."""
