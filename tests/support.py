"""Shared fixtures: in-memory SQLite per test, user factory, API client with overrides."""

import tempfile
import unittest
from itertools import count

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hearth.core import security
from hearth.core.database import get_db
from hearth.core.security import create_access_token, hash_password
from hearth.main import app
from hearth.models import Base, User
from hearth.schemas.auth import CurrentUser
from hearth.storage import LocalBlobStore, get_blob_store

# Fast hashes in tests; production cost is unchanged.
security.BCRYPT_ROUNDS = 4

DEFAULT_PASSWORD = "password123"
_emails = count(1)


def make_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema for every test; self.db is a plain session on it."""

    def setUp(self) -> None:
        self.engine = make_engine()
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def make_user(
        self,
        full_name: str = "Member",
        email: str | None = None,
        role: str = "member",
        status: str = "approved",
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            full_name=full_name,
            email=email or f"user{next(_emails)}@example.com",
            password_hash=hash_password(password),
            role=role,
            status=status,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def current(self, user: User) -> CurrentUser:
        return CurrentUser.model_validate(user)


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient wired to the same database and a temp blob store."""

    def setUp(self) -> None:
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self.store = LocalBlobStore(self._tmp.name)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_blob_store] = lambda: self.store
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        app.dependency_overrides.clear()
        self._tmp.cleanup()
        super().tearDown()

    def auth_headers(self, user: User) -> dict[str, str]:
        token = create_access_token(sub=user.id, role=user.role, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    def url(self, path: str) -> str:
        return "/api/v1" + path
