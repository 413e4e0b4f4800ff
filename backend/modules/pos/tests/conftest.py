import pytest
from fastapi.testclient import TestClient

from backend.core.config import get_settings
from backend.core.database import Base, get_db
from backend.modules.pos.adapters.toast_adapter import ToastClient
from backend.modules.pos.routes.pos_routes import get_toast_transport
from backend.modules.pos.services.credential_store import CredentialStore
from backend.modules.pos.tests.toast_fakes import (
    FakeToastAPI,
    TestingSessionLocal,
    engine,
    make_integration,
)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def toast_api():
    return FakeToastAPI()


@pytest.fixture
def credential_store(db_session):
    return CredentialStore(db_session)


@pytest.fixture
def toast_client(credential_store, toast_api):
    return ToastClient(credential_store, transport=toast_api.transport)


@pytest.fixture
def connected_integration(db_session):
    return make_integration(db_session)


@pytest.fixture(scope="function")
def client(db_session, toast_api):
    """Create a test client with database and Toast transport overrides."""
    from backend.app.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_toast_transport] = lambda: toast_api.transport
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    return get_settings()
