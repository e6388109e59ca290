"""SQLAlchemy ORM models for users, books, transactions and the audit trail"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    Integer,
    Numeric,
    ForeignKey,
    Text,
    Index,
    Uuid,
    Enum,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

from weekbook.domain.models import UserRole, UserStatus, BookStatus, ActionType, TargetType

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum(enum_cls):
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


class User(Base):
    """Portal account. The reserved system actor has no password and cannot log in"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(20), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    password_hash = Column(Text, nullable=True)
    role = Column(_enum(UserRole), nullable=False, default=UserRole.USER)
    status = Column(_enum(UserStatus), nullable=False, default=UserStatus.ACTIVE)
    is_system = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    transactions = relationship("Transaction", back_populates="user")
    books = relationship("Book", back_populates="creator")


class Book(Base):
    """Reporting period that transactions are logged against"""

    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    duration_days = Column(Integer, nullable=False)
    status = Column(_enum(BookStatus), nullable=False, default=BookStatus.ACTIVE)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    creator = relationship("User", back_populates="books")
    transactions = relationship("Transaction", back_populates="book")

    # At most one ACTIVE book, enforced by the database rather than a read-then-write check
    __table_args__ = (
        Index(
            "uq_books_single_active",
            "status",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )


class Transaction(Base):
    """One day's gain/spend entry owned by a user inside a book"""

    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False, index=True)
    transaction_date = Column(Date, nullable=False)
    amount_gained = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    amount_spent = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="transactions")
    book = relationship("Book", back_populates="transactions")


class ActionLog(Base):
    """Append-only audit record. target_id is a weak reference and may dangle"""

    __tablename__ = "action_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    action_type = Column(_enum(ActionType), nullable=False, index=True)
    target_type = Column(_enum(TargetType), nullable=False)
    target_id = Column(Uuid, nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    actor = relationship("User")
