"""Data access layer for portal entities"""

import uuid
from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from weekbook.infrastructure.database.models import User, Book, Transaction, ActionLog
from weekbook.domain.models import ActionType, BookStatus, TargetType, Totals, UserRole, UserStatus


class UserRepository:
    """Repository for user accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(or_(User.username == username, User.email == email))
            .first()
        )

    def get_system_user(self) -> Optional[User]:
        return self.db.query(User).filter(User.is_system.is_(True)).first()

    def get_any_admin(self) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.ADMIN, User.is_system.is_(False))
            .first()
        )

    def list_with_transaction_counts(self) -> List[Tuple[User, int]]:
        """All human users with the number of transactions each owns"""
        return (
            self.db.query(User, func.count(Transaction.id))
            .outerjoin(Transaction, Transaction.user_id == User.id)
            .filter(User.is_system.is_(False))
            .group_by(User.id)
            .order_by(User.created_at.desc())
            .all()
        )

    def list_active_recipients(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.status == UserStatus.ACTIVE, User.is_system.is_(False))
            .order_by(User.created_at)
            .all()
        )

    def count(self, status: Optional[UserStatus] = None) -> int:
        query = self.db.query(func.count(User.id)).filter(User.is_system.is_(False))
        if status is not None:
            query = query.filter(User.status == status)
        return query.scalar() or 0

    def has_books(self, user_id: uuid.UUID) -> bool:
        return self.db.query(Book.id).filter(Book.created_by == user_id).first() is not None

    def has_action_logs(self, user_id: uuid.UUID) -> bool:
        return self.db.query(ActionLog.id).filter(ActionLog.actor_id == user_id).first() is not None

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()  # Get ID without committing
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.flush()


class BookRepository:
    """Repository for books"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, book_id: uuid.UUID) -> Optional[Book]:
        return self.db.get(Book, book_id)

    def get_for_update(self, book_id: uuid.UUID) -> Optional[Book]:
        """Row-lock the book so its status can't change under an admission check"""
        return self.db.query(Book).filter(Book.id == book_id).with_for_update().first()

    def get_active(self) -> Optional[Book]:
        return self.db.query(Book).filter(Book.status == BookStatus.ACTIVE).first()

    def other_active_exists(self, book_id: uuid.UUID) -> bool:
        return (
            self.db.query(Book.id)
            .filter(Book.status == BookStatus.ACTIVE, Book.id != book_id)
            .first()
            is not None
        )

    def get_latest(self) -> Optional[Book]:
        """Most recent book by end date, newest creation breaking ties"""
        return (
            self.db.query(Book)
            .order_by(Book.end_date.desc(), Book.created_at.desc())
            .first()
        )

    def list(self, status: Optional[BookStatus] = None) -> List[Book]:
        query = self.db.query(Book).options(joinedload(Book.creator))
        if status is not None:
            query = query.filter(Book.status == status)
        return query.order_by(Book.created_at.desc()).all()

    def list_overdue(self, today: date) -> List[Book]:
        """ACTIVE books whose end date is already behind us"""
        return (
            self.db.query(Book)
            .filter(Book.status == BookStatus.ACTIVE, Book.end_date < today)
            .order_by(Book.end_date.desc())
            .all()
        )

    def list_starting_between(self, start: date, end: date) -> List[Book]:
        return (
            self.db.query(Book)
            .filter(Book.start_date >= start, Book.start_date <= end)
            .order_by(Book.start_date.asc())
            .all()
        )

    def count(self, status: Optional[BookStatus] = None) -> int:
        query = self.db.query(func.count(Book.id))
        if status is not None:
            query = query.filter(Book.status == status)
        return query.scalar() or 0

    def transaction_count(self, book_id: uuid.UUID) -> int:
        return (
            self.db.query(func.count(Transaction.id))
            .filter(Transaction.book_id == book_id)
            .scalar()
            or 0
        )

    def transaction_counts(self, book_ids: List[uuid.UUID]) -> dict:
        if not book_ids:
            return {}
        rows = (
            self.db.query(Transaction.book_id, func.count(Transaction.id))
            .filter(Transaction.book_id.in_(book_ids))
            .group_by(Transaction.book_id)
            .all()
        )
        return {book_id: count for book_id, count in rows}

    def add(self, book: Book) -> Book:
        self.db.add(book)
        self.db.flush()  # Partial unique index fires here
        return book

    def delete(self, book: Book) -> None:
        self.db.delete(book)
        self.db.flush()


class TransactionRepository:
    """Repository for gain/spend transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def _filtered(self, query, book_id: Optional[uuid.UUID], user_id: Optional[uuid.UUID]):
        if book_id is not None:
            query = query.filter(Transaction.book_id == book_id)
        if user_id is not None:
            query = query.filter(Transaction.user_id == user_id)
        return query

    def list(
        self,
        book_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> List[Transaction]:
        query = self.db.query(Transaction).options(
            joinedload(Transaction.user), joinedload(Transaction.book)
        )
        query = self._filtered(query, book_id, user_id)
        return query.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc()).all()

    def count_for_user(self, user_id: uuid.UUID) -> int:
        return (
            self.db.query(func.count(Transaction.id))
            .filter(Transaction.user_id == user_id)
            .scalar()
            or 0
        )

    def totals(
        self,
        book_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> Totals:
        """Sum of gains and spends plus row count for the given filters"""
        query = self.db.query(
            func.coalesce(func.sum(Transaction.amount_gained), 0),
            func.coalesce(func.sum(Transaction.amount_spent), 0),
            func.count(Transaction.id),
        )
        gained, spent, count = self._filtered(query, book_id, user_id).one()
        return Totals(
            total_gained=round(float(gained), 2),
            total_spent=round(float(spent), 2),
            transaction_count=count,
        )

    def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def delete(self, transaction: Transaction) -> None:
        self.db.delete(transaction)
        self.db.flush()


class ActionLogRepository:
    """Append-only access to the audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        actor_id: uuid.UUID,
        action_type: ActionType,
        target_type: TargetType,
        target_id: uuid.UUID,
        details: str,
    ) -> ActionLog:
        entry = ActionLog(
            actor_id=actor_id,
            action_type=action_type,
            target_type=target_type,
            target_id=target_id,
            details=details,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list(
        self,
        action_type: Optional[ActionType] = None,
        target_type: Optional[TargetType] = None,
        target_id: Optional[uuid.UUID] = None,
        limit: int = 100,
    ) -> List[ActionLog]:
        query = self.db.query(ActionLog).options(joinedload(ActionLog.actor))
        if action_type is not None:
            query = query.filter(ActionLog.action_type == action_type)
        if target_type is not None:
            query = query.filter(ActionLog.target_type == target_type)
        if target_id is not None:
            query = query.filter(ActionLog.target_id == target_id)
        return query.order_by(ActionLog.created_at.desc()).limit(limit).all()
