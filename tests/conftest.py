"""Shared fixtures: a throw-away SQLite database per test and seeded users/services"""

import os

# Must be set before homeease.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date, timedelta  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from homeease.auth import create_access_token  # noqa: E402
from homeease.database import Base, build_engine, get_db  # noqa: E402
from homeease.domain.bookings.schemas import BookingCreate  # noqa: E402
from homeease.domain.bookings.service import BookingService  # noqa: E402
from homeease.domain.reviews.service import ReviewService  # noqa: E402
from homeease.main import app  # noqa: E402
from homeease.models import Service, User  # noqa: E402
from homeease.rate_limiter import booking_rate_limit, review_rate_limit  # noqa: E402
from homeease.services.notification_service import (  # noqa: E402
    NotificationResult,
    get_notification_sender,
)


class RecordingNotifier:
    """Notification sender that remembers what it was asked to send"""

    def __init__(self):
        self.sent: list[tuple[str, str, dict]] = []

    def notify(self, recipient_email: str, template_kind: str, context: dict) -> NotificationResult:
        self.sent.append((recipient_email, template_kind, context))
        return NotificationResult(success=True)

    @property
    def kinds(self) -> list[str]:
        return [kind for _, kind, _ in self.sent]


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    def notify(self, recipient_email: str, template_kind: str, context: dict) -> NotificationResult:
        self.calls += 1
        raise RuntimeError("SMTP relay unreachable")


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'homeease_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


def _add_user(db: Session, **fields) -> User:
    user = User(**fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return _add_user(
        db,
        first_name="Asha",
        last_name="Verma",
        email="asha@example.com",
        phone="9876543210",
        role="customer",
    )


@pytest.fixture
def other_customer(db):
    return _add_user(
        db,
        first_name="Rohan",
        last_name="Iyer",
        email="rohan@example.com",
        phone="9123456780",
        role="customer",
    )


@pytest.fixture
def provider(db):
    return _add_user(
        db,
        first_name="Vikram",
        last_name="Singh",
        email="vikram@fixit.in",
        phone="9988776655",
        role="provider",
        approval_status="approved",
        business_name="FixIt Home Services",
        business_details_complete=True,
    )


@pytest.fixture
def other_provider(db):
    return _add_user(
        db,
        first_name="Meera",
        last_name="Nair",
        email="meera@sparkle.in",
        phone="9001122334",
        role="provider",
        approval_status="approved",
        business_name="Sparkle Electricals",
        business_details_complete=True,
    )


@pytest.fixture
def pending_provider(db):
    return _add_user(
        db,
        first_name="Kabir",
        last_name="Das",
        email="kabir@newco.in",
        phone="9811122233",
        role="provider",
        approval_status="pending",
    )


@pytest.fixture
def admin(db):
    return _add_user(
        db,
        first_name="Admin",
        last_name="User",
        email="admin@homeease.com",
        role="admin",
    )


def _add_service(db: Session, provider: User, name: str, price: float, category: str = "plumbing") -> Service:
    service = Service(
        name=name,
        description=f"{name} by a verified professional",
        category=category,
        price=price,
        duration_minutes=60,
        provider_id=provider.id,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def pipe_repair(db, provider):
    return _add_service(db, provider, "Pipe Repair", 500)


@pytest.fixture
def tap_install(db, provider):
    return _add_service(db, provider, "Tap Installation", 300)


@pytest.fixture
def deep_clean(db, provider):
    return _add_service(db, provider, "Deep Cleaning", 1000, category="cleaning")


@pytest.fixture
def wiring(db, other_provider):
    return _add_service(db, other_provider, "House Wiring", 400, category="electrical")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking_service(db, notifier):
    return BookingService(db, notifier)


@pytest.fixture
def review_service(db):
    return ReviewService(db)


def booking_payload(
    *services,
    quantities: Optional[list[int]] = None,
    scheduled_date: Optional[date] = None,
    scheduled_time: str = "10:00 AM",
) -> dict:
    """Checkout body for the given catalog services"""
    quantities = quantities or [1] * len(services)
    return {
        "services": [
            {"serviceId": service.id, "quantity": quantity}
            for service, quantity in zip(services, quantities)
        ],
        "scheduledDate": (scheduled_date or date.today() + timedelta(days=1)).isoformat(),
        "scheduledTime": scheduled_time,
        "customerInfo": {
            "firstName": "Asha",
            "lastName": "Verma",
            "phone": "+91 98765 43210",
            "email": "Asha@Example.com",
        },
        "address": {
            "street": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "pincode": "560001",
        },
        "notes": "Ring the bell twice",
    }


def make_booking(service: BookingService, customer: User, *services, **kwargs):
    return service.create_booking(BookingCreate(**booking_payload(*services, **kwargs)), customer)


def complete_booking(service: BookingService, booking_id: int, provider: User):
    service.transition_status(booking_id, "confirmed", provider)
    for status in ("on-the-way", "in-progress", "completed"):
        service.transition_service_status(booking_id, status, provider)
    return service.get_booking(booking_id, provider)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = lambda: notifier
    app.dependency_overrides[booking_rate_limit] = no_rate_limit
    app.dependency_overrides[review_rate_limit] = no_rate_limit
    yield TestClient(app)
    app.dependency_overrides.clear()
