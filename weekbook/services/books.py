"""Book lifecycle manager - creation, edits, deletion, auto-close and auto-generation"""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from weekbook.config import settings
from weekbook.domain.access import Operation, Resource, authorize
from weekbook.domain.book_calendar import (
    inclusive_duration_days,
    next_book_window,
    recomputed_duration_days,
    validate_book_title,
    validate_book_window,
)
from weekbook.domain.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from weekbook.domain.models import Actor, ActionType, BookStatus, TargetType
from weekbook.infrastructure.database.models import Book
from weekbook.infrastructure.database.repositories import BookRepository
from weekbook.infrastructure.observability.logging import log_book_transition
from weekbook.infrastructure.observability.metrics import record_book_event
from weekbook.services.audit import AuditLogWriter
from weekbook.services.users import ensure_system_actor
from weekbook.utils.date_utils import utc_now, window_from

logger = logging.getLogger(__name__)

ACTIVE_BOOK_EXISTS = "There is already an active book. Please close it first."
ONLY_ONE_ACTIVE = "Only one book can be active at a time"


class BookLifecycleManager:
    """
    Enforces the book state machine.

    - At most one ACTIVE book system-wide; the partial unique index on
      books.status backs the read-then-write check
    - CLOSED is terminal
    - Books with transactions can't be deleted
    """

    def __init__(self, db: Session):
        self.db = db
        self.books = BookRepository(db)
        self.audit = AuditLogWriter(db)

    def _require(self, book_id: uuid.UUID) -> Book:
        book = self.books.get(book_id)
        if book is None:
            raise NotFoundError("Book", book_id)
        return book

    def _commit_or_conflict(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(message) from e

    def _open_book(
        self,
        title: str,
        start_date: date,
        end_date: date,
        duration_days: int,
        created_by: uuid.UUID,
    ) -> Book:
        """Insert an ACTIVE book, failing with ConflictError if another is ACTIVE"""
        if self.books.get_active() is not None:
            raise ConflictError(ACTIVE_BOOK_EXISTS)

        try:
            book = self.books.add(
                Book(
                    title=title,
                    start_date=start_date,
                    end_date=end_date,
                    duration_days=duration_days,
                    status=BookStatus.ACTIVE,
                    created_by=created_by,
                )
            )
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(ACTIVE_BOOK_EXISTS) from e

        self._commit_or_conflict(ACTIVE_BOOK_EXISTS)
        return book

    def create(
        self,
        actor: Actor,
        title: str,
        start_date: Optional[date],
        end_date: Optional[date],
        duration_days: Optional[int] = None,
    ) -> Book:
        authorize(actor, Operation.CREATE, Resource.BOOK)
        validate_book_title(title)
        validate_book_window(start_date, end_date)

        if duration_days is None:
            duration_days = inclusive_duration_days(start_date, end_date)
        elif duration_days <= 0:
            raise ValidationError("Duration must be a positive number of days")

        book = self._open_book(title, start_date, end_date, duration_days, created_by=actor.id)
        log_book_transition(book.id, book.title, None, book.status.value, actor.id)

        record_book_event("created")
        self.audit.record(actor.id, ActionType.BOOK_CREATED, TargetType.BOOK, book.id, f"Created book: {book.title}")
        return book

    def update(
        self,
        actor: Actor,
        book_id: uuid.UUID,
        title: str,
        start_date: Optional[date],
        end_date: Optional[date],
        status: BookStatus,
    ) -> Book:
        """
        Admin edit of a book.

        durationDays is recomputed as ceil((end - start) / 1 day). Moving a
        book to ACTIVE fails with ConflictError while a different book is
        ACTIVE, and a CLOSED book can't be moved to any other status.
        """
        authorize(actor, Operation.UPDATE, Resource.BOOK)
        book = self._require(book_id)
        validate_book_title(title)
        validate_book_window(start_date, end_date)

        if book.status == BookStatus.CLOSED and status != BookStatus.CLOSED:
            raise StateError("Closed books cannot be reopened")

        if status == BookStatus.ACTIVE and self.books.other_active_exists(book.id):
            raise ConflictError(ONLY_ONE_ACTIVE)

        previous_status = book.status
        book.title = title
        book.start_date = start_date
        book.end_date = end_date
        book.duration_days = recomputed_duration_days(start_date, end_date)
        book.status = status
        self._commit_or_conflict(ONLY_ONE_ACTIVE)
        if previous_status != book.status:
            log_book_transition(book.id, book.title, previous_status.value, book.status.value, actor.id)

        record_book_event("updated")
        self.audit.record(actor.id, ActionType.BOOK_UPDATED, TargetType.BOOK, book.id, f"Book updated: {book.title}")
        return book

    def delete(self, actor: Actor, book_id: uuid.UUID) -> None:
        authorize(actor, Operation.DELETE, Resource.BOOK)
        book = self._require(book_id)

        if self.books.transaction_count(book.id) > 0:
            raise ConflictError("Cannot delete book with existing transactions")

        title = book.title
        try:
            self.books.delete(book)
            self.db.commit()
        except IntegrityError as e:
            # A transaction slipped in after the count
            self.db.rollback()
            raise ConflictError("Cannot delete book with existing transactions") from e

        record_book_event("deleted")
        self.audit.record(actor.id, ActionType.BOOK_DELETED, TargetType.BOOK, book_id, f"Book deleted: {title}")

    def auto_close(self, now: Optional[datetime] = None) -> int:
        """
        Close every ACTIVE book whose end date has passed.

        Returns:
            Number of books closed; a second run right after returns 0
        """
        now = now or utc_now()
        overdue = self.books.list_overdue(now.date())
        if not overdue:
            return 0

        system = ensure_system_actor(self.db)
        for book in overdue:
            book.status = BookStatus.CLOSED
            self.db.commit()
            log_book_transition(book.id, book.title, BookStatus.ACTIVE.value, BookStatus.CLOSED.value, system.id)

            record_book_event("closed")
            self.audit.record(
                system.id, ActionType.BOOK_CLOSED, TargetType.BOOK, book.id,
                f"Book automatically closed: {book.title}",
            )

        return len(overdue)

    def auto_generate_next(self, length_days: Optional[int] = None) -> Optional[Book]:
        """
        Open the book following the most recent one.

        No-op while a book is ACTIVE or when there is no prior book to derive
        the window from. Losing a race against a concurrent create is also a
        no-op.
        """
        if self.books.get_active() is not None:
            return None

        latest = self.books.get_latest()
        if latest is None:
            return None

        window = next_book_window(latest.end_date, length_days or settings.generated_book_length_days)
        system = ensure_system_actor(self.db)

        try:
            book = self._open_book(
                window.title, window.start_date, window.end_date, window.duration_days, created_by=system.id
            )
        except ConflictError:
            logger.info("Skipped book generation: another book became active")
            return None

        log_book_transition(book.id, book.title, None, book.status.value, system.id)
        record_book_event("generated")
        self.audit.record(
            system.id, ActionType.BOOK_CREATED, TargetType.BOOK, book.id,
            f"Auto-generated book: {book.title}",
        )
        return book

    # Queries

    def get(self, actor: Actor, book_id: uuid.UUID) -> Book:
        authorize(actor, Operation.READ, Resource.BOOK)
        return self._require(book_id)

    def get_active(self, actor: Actor) -> Book:
        authorize(actor, Operation.READ, Resource.BOOK)
        book = self.books.get_active()
        if book is None:
            raise NotFoundError("Active book")
        return book

    def list(self, actor: Actor, status: Optional[BookStatus] = None) -> List[Tuple[Book, int]]:
        """Books newest first, each with its transaction count"""
        authorize(actor, Operation.LIST, Resource.BOOK)
        books = self.books.list(status)
        counts = self.books.transaction_counts([b.id for b in books])
        return [(book, counts.get(book.id, 0)) for book in books]

    def overdue(self, actor: Actor, now: Optional[datetime] = None) -> List[Book]:
        authorize(actor, Operation.LIST, Resource.BOOK)
        now = now or utc_now()
        return self.books.list_overdue(now.date())

    def upcoming(self, actor: Actor, now: Optional[datetime] = None, days: int = 28) -> List[Book]:
        authorize(actor, Operation.LIST, Resource.BOOK)
        now = now or utc_now()
        start, end = window_from(now.date(), days)
        return self.books.list_starting_between(start, end)
