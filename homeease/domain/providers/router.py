"""Provider router - Provider dashboard, admin account management and analytics"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    ProviderApprovalUpdate,
    ProviderDashboardResponse,
    ProviderResponse,
    UserListResponse,
    UserResponse,
    UserStatusUpdate,
)
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


@router.get("/provider/dashboard", response_model=ProviderDashboardResponse)
async def get_provider_dashboard(
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_dashboard(current_user)


@router.get("/admin/providers/pending", response_model=list[ProviderResponse])
async def list_pending_providers(
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    """Providers waiting for admin approval"""
    return service.list_pending_providers(current_user)


@router.put("/admin/providers/{provider_id}/approval", response_model=ProviderResponse)
async def set_provider_approval(
    provider_id: int,
    data: ProviderApprovalUpdate,
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.set_approval(provider_id, data.status, data.reason, current_user)


@router.get("/admin/statistics")
async def get_platform_statistics(
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_statistics(current_user)


@router.get("/admin/users", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    isActive: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.list_users(
        current_user, role=role, search=search, is_active=isActive, page=page, limit=limit
    )


@router.put("/admin/users/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    """Activate or deactivate an account"""
    return service.set_user_status(user_id, data.isActive, current_user)


# ============================================================================
# ANALYTICS
# ============================================================================


@router.get("/analytics/provider/{provider_id}")
async def get_provider_analytics(
    provider_id: int,
    timeframe: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    """Bookings, revenue, ratings and popular services over the last `timeframe` days"""
    return service.get_provider_analytics(provider_id, current_user, timeframe_days=timeframe)


@router.get("/analytics/admin")
async def get_platform_analytics(
    timeframe: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_platform_analytics(current_user, timeframe_days=timeframe)
