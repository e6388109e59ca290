"""ORM row -> response schema conversion"""

from typing import Optional

from weekbook.api.v1.schemas import (
    ActionLogResponse,
    BookResponse,
    TotalsSchema,
    TransactionResponse,
    UserResponse,
)
from weekbook.domain.book_calendar import is_overdue
from weekbook.domain.models import BookStatus, Totals
from weekbook.infrastructure.database.models import ActionLog, Book, Transaction, User
from weekbook.utils.date_utils import utc_now


def user_response(user: User, transaction_count: Optional[int] = None) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        status=user.status,
        created_at=user.created_at,
        transaction_count=transaction_count,
    )


def book_response(book: Book, transaction_count: Optional[int] = None) -> BookResponse:
    return BookResponse(
        id=book.id,
        title=book.title,
        start_date=book.start_date,
        end_date=book.end_date,
        duration_days=book.duration_days,
        status=book.status,
        created_by=book.created_by,
        creator_name=book.creator.name if book.creator else None,
        transaction_count=transaction_count,
        is_overdue=book.status == BookStatus.ACTIVE and is_overdue(book.end_date, utc_now()),
        created_at=book.created_at,
    )


def transaction_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        user_id=transaction.user_id,
        book_id=transaction.book_id,
        transaction_date=transaction.transaction_date,
        amount_gained=transaction.amount_gained,
        amount_spent=transaction.amount_spent,
        note=transaction.note,
        user_name=transaction.user.name if transaction.user else None,
        book_title=transaction.book.title if transaction.book else None,
        book_status=transaction.book.status if transaction.book else None,
        created_at=transaction.created_at,
    )


def totals_schema(totals: Totals) -> TotalsSchema:
    return TotalsSchema(
        total_gained=totals.total_gained,
        total_spent=totals.total_spent,
        net=totals.net,
        transaction_count=totals.transaction_count,
    )


def action_log_response(entry: ActionLog) -> ActionLogResponse:
    return ActionLogResponse(
        id=entry.id,
        actor_id=entry.actor_id,
        actor_name=entry.actor.name if entry.actor else None,
        action_type=entry.action_type,
        target_type=entry.target_type,
        target_id=entry.target_id,
        details=entry.details,
        created_at=entry.created_at,
    )
