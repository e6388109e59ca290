"""Pytest fixtures for testing"""

import os

# Must be set before weekbook.config is imported
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from datetime import date
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from weekbook.api.main import create_app
from weekbook.domain.book_calendar import book_title_for
from weekbook.domain.models import Actor, BookStatus, UserRole, UserStatus
from weekbook.infrastructure.database.models import Base, Book, User
from weekbook.infrastructure.database.session import get_db
from weekbook.services.users import ensure_system_actor, to_actor
from weekbook.utils.security import create_access_token, hash_password


# Test database: one shared in-memory SQLite connection
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def session_factory() -> sessionmaker:
    return TestingSessionLocal


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def system_user(db: Session) -> User:
    return ensure_system_actor(db)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Insert a user directly, bypassing signup and audit"""

    def _make_user(
        username: str,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.ACTIVE,
        password: str = "secret123",
    ) -> User:
        user = User(
            username=username,
            name=username.capitalize(),
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def member(make_user) -> User:
    return make_user("xavier")


@pytest.fixture
def other_member(make_user) -> User:
    return make_user("yolanda")


@pytest.fixture
def admin(admin_user: User) -> Actor:
    return to_actor(admin_user)


@pytest.fixture
def member_actor(member: User) -> Actor:
    return to_actor(member)


@pytest.fixture
def other_actor(other_member: User) -> Actor:
    return to_actor(other_member)


@pytest.fixture
def make_book(db: Session, admin_user: User) -> Callable[..., Book]:
    """Insert a book directly, bypassing the lifecycle rules"""

    def _make_book(
        start_date: date,
        end_date: date,
        status: BookStatus = BookStatus.ACTIVE,
        title: str | None = None,
    ) -> Book:
        book = Book(
            title=title or book_title_for(start_date, end_date),
            start_date=start_date,
            end_date=end_date,
            duration_days=(end_date - start_date).days + 1,
            status=status,
            created_by=admin_user.id,
        )
        db.add(book)
        db.commit()
        return book

    return _make_book


@pytest.fixture
def book_a(make_book) -> Book:
    """ACTIVE book covering 2025-07-01 .. 2025-07-07"""
    return make_book(date(2025, 7, 1), date(2025, 7, 7), title="Week 27 of July - July - 2025")


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
