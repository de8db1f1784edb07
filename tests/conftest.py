import os

# Must be set before the app (and its settings) are imported.
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paintmix.main import app
from paintmix.db import Base, get_db
from paintmix.deps import get_provider_cache
from paintmix.models import Paint, Workspace
from paintmix.ai.factory import ProviderCache
from paintmix.routers import mixes as mixes_router

from stubs import StubProvider

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # share the in-memory DB across sessions
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

AI_ENV_VARS = ("AI_PROVIDER", "AI_API_KEY", "AI_URL", "AI_MODEL")


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_ai_env(monkeypatch):
    for var in AI_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def disable_rate_limits():
    mixes_router.limiter.enabled = False
    app.state.limiter.enabled = False
    yield
    mixes_router.limiter.enabled = True
    app.state.limiter.enabled = True


@pytest.fixture
def provider_cache():
    """Isolated cache; tests seed it with a builder."""
    return ProviderCache()


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def stub_cache(stub_provider):
    return ProviderCache(builder=lambda name=None: stub_provider)


@pytest.fixture
def client(stub_cache):
    """Test client with DB and provider cache overrides."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider_cache] = lambda: stub_cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def workspace(db_session):
    ws = Workspace(id="00000000-0000-0000-0000-000000000000", slug="test", name="Test Workspace")
    db_session.add(ws)
    db_session.commit()
    db_session.refresh(ws)
    return ws


@pytest.fixture
def palette(db_session, workspace):
    """Black and White, the smallest palette that can make a valid recipe."""
    black = Paint(id="paint-black", workspace_id=workspace.id, brand="Vallejo", name="Black", color="#000000")
    white = Paint(id="paint-white", workspace_id=workspace.id, brand="Vallejo", name="White", color="#FFFFFF")
    db_session.add_all([black, white])
    db_session.commit()
    return [black, white]

