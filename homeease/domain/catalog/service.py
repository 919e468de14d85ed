"""Catalog service - Business logic for the service catalog"""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import AuthorizationError, NotFoundError, PreconditionError
from ...models import Service, User
from .repository import CatalogRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def get_service(self, service_id: int, user: Optional[User] = None) -> Service:
        """Get a service; inactive ones are visible to their provider and admins only"""
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        if not service.is_active and not self._can_manage(service, user):
            raise NotFoundError("Service not found")
        return service

    def list_services(self, category: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
        services, total = self.repo.list_active_services(self.db, category, page, limit)
        return {
            "services": services,
            "page": page,
            "pages": math.ceil(total / limit) if limit else 0,
            "total": total,
        }

    def list_my_services(self, user: User) -> list[Service]:
        if user.role != "provider":
            raise AuthorizationError()
        return self.repo.get_provider_services(self.db, user.id)

    def create_service(self, data: ServiceCreate, user: User) -> Service:
        """Add a service to the provider's catalog"""
        self._assert_can_sell(user)
        logger.info(f"📥 Creating service '{data.name}' for provider {user.id}")

        service = self.repo.create_service(
            self.db,
            user.id,
            name=data.name.strip(),
            description=data.description.strip(),
            category=data.category,
            price=round(data.price, 2),
            duration_minutes=data.durationMinutes,
            is_active=True,
        )
        logger.info(f"✅ Service {service.id} created")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, user: User) -> Service:
        """
        Update a catalog entry.

        Existing bookings keep the name and price they were created with, since
        line items hold their own snapshot.
        """
        service = self._get_managed_service(service_id, user)
        if user.role == "provider":
            self._assert_can_sell(user)

        updates = {
            "name": data.name,
            "description": data.description,
            "category": data.category,
            "price": round(data.price, 2) if data.price is not None else None,
            "duration_minutes": data.durationMinutes,
            "is_active": data.isActive,
        }
        return self.repo.update_service(self.db, service, **updates)

    def deactivate_service(self, service_id: int, user: User) -> Service:
        service = self._get_managed_service(service_id, user)
        logger.info(f"🗑️ Deactivating service {service_id}")
        return self.repo.update_service(self.db, service, is_active=False)

    def _get_managed_service(self, service_id: int, user: User) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        if not self._can_manage(service, user):
            raise AuthorizationError()
        return service

    @staticmethod
    def _can_manage(service: Service, user: Optional[User]) -> bool:
        if user is None:
            return False
        return user.role == "admin" or service.provider_id == user.id

    @staticmethod
    def _assert_can_sell(user: User) -> None:
        if user.role != "provider":
            raise AuthorizationError()
        if user.approval_status != "approved":
            raise PreconditionError("Your provider account is awaiting approval")
        if not user.business_details_complete:
            raise PreconditionError("Please complete your business details before adding services")
