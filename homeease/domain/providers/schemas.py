"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..bookings.schemas import BookingResponse


class ProviderApprovalUpdate(BaseModel):
    status: str
    reason: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in ("approved", "rejected"):
            raise ValueError('Invalid approval status. Must be "approved" or "rejected"')
        return v


class ProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    business_name: Optional[str] = None
    business_details_complete: bool
    approval_status: str
    rejection_reason: Optional[str] = None
    provider_rating: float
    provider_total_ratings: int
    completed_services: int
    total_earnings: float
    last_service_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    totalBookings: int
    pendingBookings: int
    confirmedBookings: int
    completedBookings: int
    cancelledBookings: int
    rejectedBookings: int
    totalEarnings: float
    rating: float
    totalRatings: int


class ProviderDashboardResponse(BaseModel):
    stats: DashboardStats
    recentBookings: list[BookingResponse]


class UserStatusUpdate(BaseModel):
    isActive: bool


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: str
    approval_status: str
    is_active: bool
    created_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    users: list[UserResponse]
    page: int
    pages: int
    total: int
    limit: int
