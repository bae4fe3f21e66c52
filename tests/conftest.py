import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bookingdesk.models import Base
from bookingdesk.services.availability.availability_service import AvailabilityService

from fakes import InMemoryBookingRepository, InMemoryRuleRepository, fixed_clock


@pytest.fixture
def rules():
    return InMemoryRuleRepository()


@pytest.fixture
def bookings():
    return InMemoryBookingRepository()


@pytest.fixture
def service(rules, bookings):
    return AvailabilityService(rules, bookings, clock=fixed_clock)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
