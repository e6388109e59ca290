"""/v1/books - book lifecycle and book read models"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from weekbook.api.dependencies import get_current_actor
from weekbook.api.v1.schemas import (
    BookCreateRequest,
    BookReportResponse,
    BookResponse,
    BookUpdateRequest,
    MessageResponse,
)
from weekbook.api.v1.serializers import book_response, totals_schema, transaction_response
from weekbook.domain.models import Actor, BookStatus
from weekbook.infrastructure.database.session import get_db
from weekbook.services.books import BookLifecycleManager
from weekbook.services.reports import book_report

router = APIRouter()


@router.post("/books", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def create_book(
    request_body: BookCreateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Open a new ACTIVE book (admin only).

    Fails with 409 while another book is ACTIVE.
    """
    book = BookLifecycleManager(db).create(
        actor,
        title=request_body.title,
        start_date=request_body.start_date,
        end_date=request_body.end_date,
        duration_days=request_body.duration_days,
    )
    return book_response(book, transaction_count=0)


@router.get("/books", response_model=List[BookResponse])
def list_books(
    status_filter: Optional[BookStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    rows = BookLifecycleManager(db).list(actor, status_filter)
    return [book_response(book, count) for book, count in rows]


@router.get("/books/active", response_model=BookResponse)
def get_active_book(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return book_response(BookLifecycleManager(db).get_active(actor))


@router.get("/books/overdue", response_model=List[BookResponse])
def list_overdue_books(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    """ACTIVE books past their end date that the scheduler has not closed yet"""
    return [book_response(book) for book in BookLifecycleManager(db).overdue(actor)]


@router.get("/books/upcoming", response_model=List[BookResponse])
def list_upcoming_books(
    days: int = Query(28, ge=1, le=365),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return [book_response(book) for book in BookLifecycleManager(db).upcoming(actor, days=days)]


@router.get("/books/{book_id}", response_model=BookResponse)
def get_book(book_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return book_response(BookLifecycleManager(db).get(actor, book_id))


@router.put("/books/{book_id}", response_model=BookResponse)
def update_book(
    book_id: uuid.UUID,
    request_body: BookUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    book = BookLifecycleManager(db).update(
        actor,
        book_id,
        title=request_body.title,
        start_date=request_body.start_date,
        end_date=request_body.end_date,
        status=request_body.status,
    )
    return book_response(book)


@router.delete("/books/{book_id}", response_model=MessageResponse)
def delete_book(book_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    BookLifecycleManager(db).delete(actor, book_id)
    return MessageResponse(message="Book deleted successfully")


@router.get("/books/{book_id}/report", response_model=BookReportResponse)
def get_book_report(
    book_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Book, its transactions and aggregate totals for export.

    Non-admins only get their own transactions.
    """
    report = book_report(db, actor, book_id, user_id)
    return BookReportResponse(
        book=book_response(report.book, report.totals.transaction_count),
        transactions=[transaction_response(t) for t in report.transactions],
        totals=totals_schema(report.totals),
    )
