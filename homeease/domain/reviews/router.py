"""Review router - FastAPI endpoints for reviews and their moderation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import review_rate_limit
from .schemas import ReviewCreate, ReviewListResponse, ReviewResponse, ReviewVisibilityUpdate
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["Admin"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("", response_model=ReviewResponse, status_code=201)
async def submit_review(
    data: ReviewCreate,
    _: None = Depends(review_rate_limit),
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Review a completed booking, once"""
    return service.submit_review(data.bookingId, current_user, data.rating, data.comment)


@router.get("/provider/{provider_id}", response_model=ReviewListResponse)
async def list_provider_reviews(
    provider_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.list_provider_reviews(provider_id, current_user, page, limit)


@router.get("/service/{service_id}", response_model=ReviewListResponse)
async def list_service_reviews(
    service_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    """Public reviews of a catalog service"""
    return service.list_service_reviews(service_id, page, limit)


# ============================================================================
# ADMIN MODERATION
# ============================================================================


@admin_router.get("", response_model=ReviewListResponse)
async def list_all_reviews(
    rating: Optional[int] = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.list_all_reviews(current_user, rating=rating, page=page, limit=limit)


@admin_router.patch("/{review_id}", response_model=ReviewResponse)
async def set_review_visibility(
    review_id: int,
    data: ReviewVisibilityUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.set_visibility(review_id, data.isVisible, current_user)


@admin_router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    service.delete_review(review_id, current_user)
    return {"message": "Review deleted successfully"}
