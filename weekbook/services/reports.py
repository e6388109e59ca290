"""Read models for exports and the dashboard"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from weekbook.domain.access import Operation, Resource, authorize, scope_user_filter
from weekbook.domain.exceptions import NotFoundError
from weekbook.domain.models import Actor, BookStatus, Totals, UserStatus
from weekbook.infrastructure.database.models import Book, Transaction
from weekbook.infrastructure.database.repositories import BookRepository, TransactionRepository, UserRepository
from weekbook.utils.date_utils import utc_now, window_from

UPCOMING_DAYS = 28


@dataclass
class BookReport:
    """Everything an exporter needs to render one book"""

    book: Book
    transactions: List[Transaction]
    totals: Totals


@dataclass
class DashboardSummary:
    total_books: int
    active_books: int
    total_users: int
    active_users: int
    totals: Totals
    overdue_books: List[Book] = field(default_factory=list)
    upcoming_books: List[Book] = field(default_factory=list)


def book_report(
    db: Session,
    actor: Actor,
    book_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = None,
) -> BookReport:
    """Book, its transactions and totals, scoped to what the actor may see"""
    authorize(actor, Operation.READ, Resource.REPORT)
    book = BookRepository(db).get(book_id)
    if book is None:
        raise NotFoundError("Book", book_id)

    effective_user = scope_user_filter(actor, user_id)
    transactions = TransactionRepository(db)
    return BookReport(
        book=book,
        transactions=transactions.list(book_id=book.id, user_id=effective_user),
        totals=transactions.totals(book_id=book.id, user_id=effective_user),
    )


def dashboard_summary(db: Session, actor: Actor, now: Optional[datetime] = None) -> DashboardSummary:
    """
    Counts, gain/spend totals and books needing attention.

    Transaction totals follow the listing rules: admins see everything,
    other users see their own figures.
    """
    authorize(actor, Operation.READ, Resource.DASHBOARD)
    now = now or utc_now()

    books = BookRepository(db)
    users = UserRepository(db)
    start, end = window_from(now.date(), UPCOMING_DAYS)

    return DashboardSummary(
        total_books=books.count(),
        active_books=books.count(BookStatus.ACTIVE),
        total_users=users.count(),
        active_users=users.count(UserStatus.ACTIVE),
        totals=TransactionRepository(db).totals(user_id=scope_user_filter(actor, None)),
        overdue_books=books.list_overdue(now.date()),
        upcoming_books=books.list_starting_between(start, end),
    )
