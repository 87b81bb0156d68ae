import pytest
import requests
from requests.structures import CaseInsensitiveDict
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mealweek.main import app
from mealweek.db import Base, get_db
from mealweek.deps import get_image_resolver
from mealweek.limits import limiter
from mealweek.models import User
from mealweek.services.image_resolver import ImageResolver
from mealweek.settings import settings

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# StaticPool keeps one in-memory connection shared across sessions/threads
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# --- Outbound HTTP fakes ---

class FakeResponse:
    def __init__(self, status_code=200, text="", json_data=None, headers=None):
        self.status_code = status_code
        self.text = text
        self._json = json_data
        self.headers = CaseInsensitiveDict(headers or {})
        self.encoding = "utf-8"
        self.bytes_read = 0
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    @property
    def is_redirect(self):
        return "location" in self.headers and self.status_code in (301, 302, 303, 307, 308)

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size=1):
        body = self.text.encode("utf-8")
        for start in range(0, len(body), chunk_size):
            chunk = body[start:start + chunk_size]
            self.bytes_read += len(chunk)
            yield chunk

    def close(self):
        self.closed = True


class FakeSession:
    """Records GETs and answers from a url-prefix -> response (or exception) map."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []
        self.headers = {}

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        for prefix, answer in self.routes.items():
            if url.startswith(prefix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.ConnectionError(f"No route for {url}")


@pytest.fixture
def fake_http():
    return FakeSession()


@pytest.fixture
def offline_resolver(fake_http):
    """Resolver with no search credentials and no reachable network."""
    return ImageResolver(session=fake_http)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def disable_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = settings.rate_limit_enabled


@pytest.fixture
def client(offline_resolver):
    """Test client with DB and image resolver overrides."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_resolver] = lambda: offline_resolver
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
def user(db_session):
    u = User(id="00000000-0000-0000-0000-000000000001", email="cook@example.com", name="Cook")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def other_user(db_session):
    u = User(id="00000000-0000-0000-0000-000000000002", email="other@example.com", name="Other")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def auth_headers(user):
    return {settings.identity_header: user.email}
