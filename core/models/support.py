"""Support form message."""

from pydantic import BaseModel


class SupportMessage(BaseModel):
    """Emptiness is checked by SupportService so the client gets a 400."""

    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None
