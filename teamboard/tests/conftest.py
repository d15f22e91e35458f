import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import os
from contextlib import contextmanager
from typing import Callable, Generator, Any

# Environment must be set BEFORE settings are imported anywhere.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "testsecretkey"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

# Registers every model on Base.metadata
import teamboard.models

from teamboard.models.base import Base
from teamboard.core.settings import settings as app_settings
from teamboard.main import app

engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

from teamboard.dependencies import get_db, get_session_scope
from teamboard.crud.user import create_user
from teamboard.crud.team import create_team
from teamboard.core.security import TokenIssuer


@pytest.fixture(scope="session", autouse=True)
def create_test_tables_session_scope():
    """
    Create all tables once per test session and drop them afterwards.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session bound to an outer transaction that is rolled back after each test.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient sharing the test session; the startup hook wires the token issuer and notifier.
    """
    def override_get_db():
        yield db

    @contextmanager
    def shared_session_scope():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_scope] = lambda: shared_session_scope
    with TestClient(app) as c:
        yield c
    del app.dependency_overrides[get_db]
    del app.dependency_overrides[get_session_scope]


@pytest.fixture(scope="session")
def token_issuer() -> TokenIssuer:
    return TokenIssuer.from_settings(app_settings)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., Any]:
    """
    Factory: make_user("alice") creates alice@example.com with password pw123456.
    """
    def _make_user(name: str, password: str = "pw123456") -> Any:
        return create_user(db, {"name": name.title(), "email": f"{name}@example.com", "password": password})
    return _make_user


@pytest.fixture(scope="function")
def auth_headers(token_issuer: TokenIssuer) -> Callable[[Any], dict]:
    def _auth_headers(user: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_issuer.issue(user.id)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def alice(make_user) -> Any:
    return make_user("alice")


@pytest.fixture(scope="function")
def bob(make_user) -> Any:
    return make_user("bob")


@pytest.fixture(scope="function")
def carol(make_user) -> Any:
    return make_user("carol")


@pytest.fixture(scope="function")
def team(db: Session, alice: Any) -> Any:
    """
    Team "Eng" owned by alice.
    """
    return create_team(db, owner_id=alice.id, name="Eng", description="Engineering")
