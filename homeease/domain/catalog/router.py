"""Catalog router - FastAPI endpoints for browsing and managing services"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import User
from .schemas import ServiceCreate, ServiceListResponse, ServiceResponse, ServiceUpdate
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("", response_model=ServiceListResponse)
async def list_services(
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
):
    """Browse active services, optionally by category"""
    return service.list_services(category, page, limit)


@router.get("/mine", response_model=list[ServiceResponse])
async def list_my_services(
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_my_services(current_user)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_service(service_id, current_user)


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data, current_user)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data, current_user)


@router.delete("/{service_id}")
async def deactivate_service(
    service_id: int,
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Deactivate a service; bookings that reference it are untouched"""
    service.deactivate_service(service_id, current_user)
    return {"message": "Service deactivated successfully"}
