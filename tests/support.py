"""Shared test helpers: isolated settings and an API client backed by in-memory SQLite."""

import unittest
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from revforge.core.config import Settings, get_settings
from revforge.core.database import get_db
from revforge.main import app
from revforge.models import Base, User
from revforge.services import users
from revforge.services.rbac import UserRole

TEST_JWT_SECRET = "unit-test-secret-key-that-is-long-enough-for-hs256"


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from .env; production-like (secret set) unless overridden."""
    values: dict[str, Any] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_JWT_SECRET,
        "ALLOW_INSECURE_JWT_SECRET": False,
        "AUTH_STRICT_TOKEN_TYPE": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables; one shared connection (StaticPool)."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


class ApiTestCase(unittest.TestCase):
    """Runs the real app with get_db and get_settings overridden per test."""

    settings_overrides: dict[str, Any] = {}
    raise_server_exceptions = True

    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.settings = make_settings(**self.settings_overrides)

        def override_get_db():
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: self.settings
        # https so Secure cookies round-trip through the client cookie jar
        self.client = TestClient(
            app,
            base_url="https://testserver",
            raise_server_exceptions=self.raise_server_exceptions,
        )
        self.db = self.session_factory()

    def tearDown(self) -> None:
        self.db.close()
        self.client.close()
        app.dependency_overrides.clear()
        engine = self.session_factory.kw["bind"]
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

    def create_user(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.VIEWER,
        name: str | None = None,
    ) -> str:
        """Insert a user directly and return its id."""
        user = users.create_user(self.db, email, password, name, role)
        self.db.commit()
        return user.id

    def fetch_user(self, email: str) -> User:
        """Reload a user row as the API last wrote it."""
        self.db.expire_all()
        user = users.get_user_by_email(self.db, email)
        assert user is not None
        return user

    def login(self, email: str, password: str, ip: str | None = None):
        headers = {"X-Forwarded-For": ip} if ip else None
        return self.client.post(
            "/api/auth/login", json={"email": email, "password": password}, headers=headers
        )
