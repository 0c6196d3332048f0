# tests/conftest.py
"""
Pytest configuration for the scheduling core.

Every test gets a fresh in-memory SQLite database with the full schema, a
seeded reference catalog and services wired to a fixed clock.
"""

import os

# Set testing mode BEFORE any package imports so the default engine is in-memory.
os.environ["IS_TESTING"] = "true"

from datetime import date, datetime, time, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Callable, Dict

import pytest
from sqlalchemy.orm import Session, sessionmaker

from podcast_studio.database import build_engine, init_db
from podcast_studio.models import (
    PodcastDecor,
    PodcastPackOffer,
    PodcastSupplement,
    PodcastTheme,
)
from podcast_studio.services.availability_service import AvailabilityService
from podcast_studio.services.base import BaseService
from podcast_studio.services.booking_lifecycle_service import BookingLifecycleManager

# Monday; Europe/Paris is UTC+2 on that day.
BOOKING_DAY = date(2025, 6, 16)
FIXED_NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Database session on the per-test engine."""
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def _reset_service_metrics():
    BaseService._class_metrics.clear()
    yield
    BaseService._class_metrics.clear()


@pytest.fixture
def catalog(db: Session) -> SimpleNamespace:
    """Seeded reference data: active and inactive items of every kind."""
    items = SimpleNamespace(
        pack=PodcastPackOffer(name="Studio Pack", base_price=Decimal("150.00"), duration_min=120),
        short_pack=PodcastPackOffer(name="Express", base_price=Decimal("80.00"), duration_min=60),
        odd_pack=PodcastPackOffer(name="Ninety", base_price=Decimal("100.00"), duration_min=90),
        retired_pack=PodcastPackOffer(
            name="Retired", base_price=Decimal("10.00"), duration_min=60, is_active=False
        ),
        decor=PodcastDecor(name="Loft"),
        retired_decor=PodcastDecor(name="Old Loft", is_active=False),
        theme=PodcastTheme(name="Business"),
        retired_theme=PodcastTheme(name="Retro", is_active=False),
        video=PodcastSupplement(name="Video recording", price=Decimal("30.00")),
        editing=PodcastSupplement(name="Editing", price=Decimal("20.50")),
        retired_supplement=PodcastSupplement(
            name="Live stream", price=Decimal("40.00"), is_active=False
        ),
    )
    db.add_all(list(vars(items).values()))
    db.commit()
    return items


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def lifecycle(db: Session, catalog: SimpleNamespace) -> BookingLifecycleManager:
    return BookingLifecycleManager(db, now_fn=lambda: FIXED_NOW)


@pytest.fixture
def availability_service(db: Session) -> AvailabilityService:
    return AvailabilityService(db)


@pytest.fixture
def reservation_payload(catalog: SimpleNamespace) -> Callable[..., Dict[str, Any]]:
    """Build a ReservationCreate-shaped dict; keyword overrides win."""

    def _payload(
        day: date = BOOKING_DAY, start: time = time(10, 0), **overrides: Any
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "requested_date": day,
            "requested_start_time": start,
            "pack_offer_id": catalog.short_pack.id,
            "theme_id": catalog.theme.id,
            "customer_name": "Ada Lovelace",
            "customer_email": "ada@example.com",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def make_reservation(lifecycle: BookingLifecycleManager, reservation_payload):
    """Create a pending reservation at ``start`` on ``day`` lasting ``duration_hours``."""

    def _make(
        day: date = BOOKING_DAY,
        start: time = time(10, 0),
        duration_hours: int = 1,
        **overrides: Any,
    ):
        return lifecycle.create(
            reservation_payload(day, start, duration_hours=duration_hours, **overrides)
        )

    return _make
