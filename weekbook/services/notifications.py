"""New-book notices - one intent per active user, handed to a dispatcher"""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from weekbook.domain.models import NotificationBatch, NotificationIntent
from weekbook.infrastructure.database.repositories import BookRepository, UserRepository


def build_new_book_notifications(db: Session, book_id: uuid.UUID) -> Optional[NotificationBatch]:
    """
    Collect a (recipient, book) intent for every ACTIVE user.

    Returns None when the book no longer exists.
    """
    book = BookRepository(db).get(book_id)
    if book is None:
        return None

    recipients = UserRepository(db).list_active_recipients()
    return NotificationBatch(
        book_id=book.id,
        book_title=book.title,
        start_date=book.start_date,
        end_date=book.end_date,
        intents=[NotificationIntent(recipient_id=user.id, book_id=book.id) for user in recipients],
    )
