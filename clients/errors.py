"""Base error for third-party service failures."""


class ExternalServiceError(Exception):
    """
    An outbound call to an external provider failed.

    The message is human-readable and safe to return to clients; provider
    internals go to the log, not into the message.
    """
