"""Car (rental inventory) domain models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CarCreate(BaseModel):
    """Data required to list a car."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    price_per_day: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: str | None = Field(None, max_length=100)
    seats: int | None = Field(None, ge=1, le=100)
    transmission: str | None = Field(None, pattern="^(automatic|manual)$")
    fuel_type: str | None = Field(None, max_length=50)
    image_urls: list[str] = Field(default_factory=list)
    is_available: bool = True


class CarUpdate(BaseModel):
    """Data that can be updated on a car. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    price_per_day: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    category: str | None = Field(None, max_length=100)
    seats: int | None = Field(None, ge=1, le=100)
    transmission: str | None = Field(None, pattern="^(automatic|manual)$")
    fuel_type: str | None = Field(None, max_length=50)
    image_urls: list[str] | None = None
    is_available: bool | None = None


class Car(BaseModel):
    """Full car entity as stored."""

    id: int
    title: str
    description: str | None
    price_per_day: Decimal
    category: str | None
    seats: int | None
    transmission: str | None
    fuel_type: str | None
    image_urls: list[str]
    is_available: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
