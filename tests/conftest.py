"""
Pytest configuration and fixtures for testing the change request backend.
"""
import sys
import os
from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add the parent directory to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.main import app
from app.db.session import Base, get_db
from app.models.change_request import ChangeRequest
from app.schemas.change_request import ChangeRequestCreate
from app.services.change_request_service import ChangeRequestService
from app.services.itil_gateway import SimulatedItilGateway, get_itil_gateway


# Create in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Create a fresh database for each test function.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway() -> SimulatedItilGateway:
    """Simulated ITIL gateway that records every payload it receives."""
    return SimulatedItilGateway()


@pytest.fixture(scope="function")
def client(db: Session, gateway: SimulatedItilGateway) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database and the recording gateway.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_itil_gateway] = lambda: gateway

    # Reset rate limiter for each test to avoid rate limit issues in tests
    app.state.limiter.reset()

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def change_request_data() -> Dict:
    """Valid creation payload."""
    return {
        "title": "Upgrade core switch firmware",
        "description": "Apply vendor firmware 9.3.12 to the core switch pair",
        "change_type": "normal",
        "priority": "medium",
        "requester_name": "John Doe",
        "requester_email": "john@example.com",
        "business_justification": "Vendor security advisory requires the upgrade",
        "implementation_plan": "Fail over to standby, upgrade, fail back",
        "rollback_plan": "Boot previous firmware image from flash",
        "risk_assessment": "Brief loss of redundancy during upgrade",
        "impact_assessment": "No user impact expected",
        "scheduled_start": "2024-01-15T10:00:00Z",
        "scheduled_end": "2024-01-15T12:00:00Z",
    }


@pytest.fixture
def make_change_request(db: Session, change_request_data: Dict) -> Callable[..., ChangeRequest]:
    """
    Factory creating stored change requests through the service.
    Keyword arguments override fields of the default payload.
    """
    service = ChangeRequestService(db)

    def _make(**overrides) -> ChangeRequest:
        data = {**change_request_data, **overrides}
        return service.create_change_request(ChangeRequestCreate(**data))

    return _make
