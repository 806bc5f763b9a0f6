"""Custom exceptions for the message bus."""


class PubSubError(Exception):
    """Base exception for message bus errors."""

    pass


class BusConnectionError(PubSubError):
    """Raised when the broker connection cannot be established."""

    pass


class PublishError(PubSubError):
    """Raised when publishing a message fails."""

    pass


class ConsumeError(PubSubError):
    """Raised when a queue cannot be declared or consumed."""

    pass
