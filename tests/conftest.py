"""
Pytest configuration and fixtures for Shipment Manager tests.
"""
import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set test environment before importing package modules
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_URL"] = ""
os.environ["INOUT_TEST_TOKEN"] = "inout-sandbox-token"

from shipment_manager.core.database import Base  # noqa: E402
from shipment_manager.models.order import ShippingAddress  # noqa: E402
from shipment_manager.models.provider import Tenant  # noqa: E402
from shipment_manager.models.sender_address import SenderAddress  # noqa: E402
from shipment_manager.services.office_cache import clear_memory_caches  # noqa: E402
from shipment_manager.services.sender_address_repository import SenderAddressRepository  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_office_caches():
    clear_memory_caches()
    yield
    clear_memory_caches()


@pytest.fixture
def tenant() -> Tenant:
    return Tenant(
        id="4b1c0c2e-0000-4000-8000-000000000001",
        apps={
            "shipping": {
                "Econt": {"username": "econt-user", "password": "econt-pass", "testMode": True},
                "InOut": {"token": "inout-token", "testMode": False},
                "bobgo": {"token": "bobgo-token", "testMode": True},
            },
        },
    )


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def sender_repository(db_session) -> SenderAddressRepository:
    return SenderAddressRepository(db_session)


@pytest.fixture
def sender_address(sender_repository) -> SenderAddress:
    return sender_repository.save(SenderAddress(
        id="sender-1",
        short_name="Sofia Vitosha",
        sender_name="Test Store Ltd",
        sender_phone="+359888123456",
        country_code="BG",
        city="Sofia",
        province="Sofia City",
        post_code="1000",
        street_name="Vitosha",
        street_number="1",
        is_default=True,
    ))


@pytest.fixture
def bg_address() -> ShippingAddress:
    return ShippingAddress(
        first_name="Ivan",
        last_name="Petrov",
        phone="0888 123 456",
        country="BGR",
        city="гр. Пловдив",
        post_code="4000",
        address="Main street",
        street_number="12",
        area="Plovdiv",
        province="Plovdiv",
    )


@pytest.fixture
def za_address() -> ShippingAddress:
    return ShippingAddress(
        first_name="Thandi",
        last_name="Nkosi",
        phone="0821234567",
        country="ZAF",
        city="Cape Town",
        post_code="8001",
        address="Long Street",
        street_number="44",
        area="City Centre",
        province="Western Cape",
        company_name="Nkosi Trading",
    )

