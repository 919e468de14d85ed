"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email, validate_indian_phone, validate_pincode
from .state import PRIMARY_STATUSES, SERVICE_STATUSES, TIME_SLOTS


class CartItem(BaseModel):
    serviceId: int
    quantity: int = Field(default=1, ge=1)


class CustomerInfo(BaseModel):
    firstName: str = Field(min_length=1, max_length=50)
    lastName: str = Field(min_length=1, max_length=50)
    phone: str = Field(min_length=10, max_length=20)
    email: str = Field(min_length=3, max_length=255)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_indian_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class Address(BaseModel):
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = "India"
    pincode: str
    landmark: Optional[str] = None

    @field_validator("pincode")
    @classmethod
    def validate_pin(cls, v):
        return validate_pincode(v)


class BookingCreate(BaseModel):
    """Schema for checking out a cart into a booking"""

    services: list[CartItem] = Field(min_length=1)
    scheduledDate: date
    scheduledTime: str
    customerInfo: CustomerInfo
    address: Address
    paymentMethod: str = "cod"
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("scheduledTime")
    @classmethod
    def validate_time_slot(cls, v):
        if v not in TIME_SLOTS:
            raise ValueError(f"Scheduled time must be one of: {', '.join(TIME_SLOTS)}")
        return v

    @field_validator("paymentMethod")
    @classmethod
    def validate_payment_method(cls, v):
        if v != "cod":
            raise ValueError("Only cash on service (cod) is supported")
        return v


class StatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in PRIMARY_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(PRIMARY_STATUSES)}")
        return v


class ServiceStatusUpdate(BaseModel):
    serviceStatus: str
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("serviceStatus")
    @classmethod
    def validate_service_status(cls, v):
        if v not in SERVICE_STATUSES:
            raise ValueError(f"Invalid service status. Must be one of: {', '.join(SERVICE_STATUSES)}")
        return v


class ProviderNotesUpdate(BaseModel):
    notes: str = Field(max_length=500)


class BookingItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_id: int
    service_name: str
    quantity: int
    unit_price: float


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    notes: Optional[str] = None
    updated_by_id: Optional[int] = None
    updated_at: datetime


class BookingResponse(BaseModel):
    """Schema for booking response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_code: str
    customer_id: int
    provider_id: int
    status: str
    service_status: Optional[str] = None
    scheduled_date: date
    scheduled_time: str
    customer_first_name: str
    customer_last_name: str
    customer_phone: str
    customer_email: str
    address_street: str
    address_city: str
    address_state: str
    address_pincode: str
    address_landmark: Optional[str] = None
    subtotal: float
    service_fee: float
    total: float
    payment_method: str
    payment_status: str
    customer_notes: Optional[str] = None
    provider_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int
    items: list[BookingItemResponse]
    history: list[HistoryEntryResponse]


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    page: int
    pages: int
    total: int
    limit: int


class ReviewEligibilityResponse(BaseModel):
    bookingId: int
    canReview: bool
