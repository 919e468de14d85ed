"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ReviewCreate(BaseModel):
    """Rating and comment limits are enforced by the service layer"""

    bookingId: int
    rating: int
    comment: str


class ReviewVisibilityUpdate(BaseModel):
    isVisible: bool


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    customer_id: int
    provider_id: int
    service_id: int
    rating: int
    comment: str
    is_visible: bool
    created_at: datetime
    customer_name: Optional[str] = None


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    page: int
    pages: int
    total: int
    averageRating: float
