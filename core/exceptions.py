"""Domain exceptions shared across services."""


class ConflictError(Exception):
    """
    A write collided with a uniqueness rule.

    `field` names the colliding column when known ("username", "email",
    "payment_reference"), so callers can decide whether the collision is
    recoverable.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
