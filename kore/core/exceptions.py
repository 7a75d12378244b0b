class ModerationError(Exception):
    """Base class for errors raised by the moderation core."""


class InvalidArgument(ModerationError, ValueError):
    """A kind, duration or paging value outside what the core accepts."""


class NotFound(ModerationError):
    """Reserved for operations that require an existing relationship."""


class TransientStoreError(ModerationError):
    """The database call failed; the caller decides whether to retry."""


class UniqueConstraintViolation(ModerationError):
    """An insert collided with an existing relationship for the same key."""
