"""Catalog repository - Database operations for services and their providers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...database import retry_read
from ...models import Service, User


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    @retry_read
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    @retry_read
    def get_provider(db: Session, provider_id: int) -> Optional[User]:
        return (
            db.query(User)
            .filter(User.id == provider_id, User.role == "provider")
            .first()
        )

    @staticmethod
    @retry_read
    def list_active_services(
        db: Session,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Service], int]:
        """Active services offered by active, approved providers"""
        query = (
            db.query(Service)
            .join(User, Service.provider_id == User.id)
            .filter(
                Service.is_active.is_(True),
                User.is_active.is_(True),
                User.approval_status == "approved",
            )
        )
        if category:
            query = query.filter(Service.category == category)

        total = query.count()
        services = (
            query.order_by(Service.created_at.desc(), Service.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return services, total

    @staticmethod
    @retry_read
    def get_provider_services(db: Session, provider_id: int) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.provider_id == provider_id)
            .order_by(Service.created_at.desc(), Service.id.desc())
            .all()
        )

    @staticmethod
    def create_service(db: Session, provider_id: int, **service_data) -> Service:
        service = Service(provider_id=provider_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        """Update a service with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service
