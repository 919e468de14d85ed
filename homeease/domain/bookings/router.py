"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import booking_rate_limit
from ...services.notification_service import NotificationSender, get_notification_sender
from .schemas import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    ProviderNotesUpdate,
    ReviewEligibilityResponse,
    ServiceStatusUpdate,
    StatusUpdate,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier)


# ============================================================================
# CREATE AND QUERY
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    _: None = Depends(booking_rate_limit),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Check out the cart into a pending booking"""
    return service.create_booking(data, current_user)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings visible to the caller, newest first"""
    return service.list_bookings(current_user, status=status, page=page, limit=limit)


@router.get("/stats")
async def get_booking_stats(
    providerId: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Booking counts per status, zero-filled"""
    return service.status_counts(current_user, provider_id=providerId)


@router.get("/code/{booking_code}", response_model=BookingResponse)
async def get_booking_by_code(
    booking_code: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_booking_by_code(booking_code, current_user)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_booking(booking_id, current_user)


# ============================================================================
# TRANSITIONS
# ============================================================================


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: StatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm, reject or cancel a booking"""
    return service.transition_status(booking_id, data.status, current_user, reason=data.reason)


@router.put("/{booking_id}/service-status", response_model=BookingResponse)
async def update_service_status(
    booking_id: int,
    data: ServiceStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Advance the service status of a confirmed booking"""
    return service.transition_service_status(
        booking_id, data.serviceStatus, current_user, notes=data.notes
    )


@router.put("/{booking_id}/provider-notes", response_model=BookingResponse)
async def update_provider_notes(
    booking_id: int,
    data: ProviderNotesUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.update_provider_notes(booking_id, data.notes, current_user)


@router.get("/{booking_id}/can-review", response_model=ReviewEligibilityResponse)
async def can_review(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return ReviewEligibilityResponse(
        bookingId=booking_id,
        canReview=service.can_review(booking_id, current_user.id),
    )
