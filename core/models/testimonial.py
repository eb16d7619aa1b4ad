"""Customer testimonial models."""

from datetime import datetime

from pydantic import BaseModel, Field


class TestimonialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    rating: int = Field(..., ge=1, le=5)
    message: str = Field(..., min_length=1, max_length=5000)


class Testimonial(BaseModel):
    id: int
    name: str
    rating: int
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}
