"""Transaction admission controller - who may log what, when, against which book"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from weekbook.domain.access import Operation, Resource, authorize, scope_user_filter
from weekbook.domain.book_calendar import contains
from weekbook.domain.exceptions import ForbiddenError, NotFoundError, RangeError, StateError, ValidationError
from weekbook.domain.models import Actor, ActionType, BookStatus, TargetType
from weekbook.infrastructure.database.models import Book, Transaction
from weekbook.infrastructure.database.repositories import BookRepository, TransactionRepository
from weekbook.infrastructure.observability.metrics import record_admission_rejection, record_transaction_event
from weekbook.services.audit import AuditLogWriter


class TransactionAdmissionController:
    """
    Gatekeeper for transaction mutations.

    Checks run in a fixed order so the error a caller sees is stable:
    existence, ownership, book ACTIVE, date inside the book window.
    Only the owning user may update or delete; admins get no override.
    """

    def __init__(self, db: Session):
        self.db = db
        self.books = BookRepository(db)
        self.transactions = TransactionRepository(db)
        self.audit = AuditLogWriter(db)

    def _reject(self, reason: str, exc: Exception) -> Exception:
        record_admission_rejection(reason)
        return exc

    def _require_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise self._reject("not_found", NotFoundError("Transaction", transaction_id))
        return transaction

    def _require_owner(self, actor: Actor, operation: Operation, transaction: Transaction) -> None:
        try:
            authorize(actor, operation, Resource.TRANSACTION, owner_id=transaction.user_id)
        except ForbiddenError as e:
            raise self._reject("forbidden", e)

    def _require_open_book(self, book_id: uuid.UUID, message: str) -> Book:
        book = self.books.get_for_update(book_id)
        if book is None:
            raise self._reject("not_found", NotFoundError("Book", book_id))
        if book.status != BookStatus.ACTIVE:
            raise self._reject("state", StateError(message))
        return book

    def _require_in_window(self, book: Book, transaction_date: date) -> None:
        if not contains(book.start_date, book.end_date, transaction_date):
            raise self._reject("range", RangeError("Transaction date must be within the book period"))

    @staticmethod
    def _validate_amounts(amount_gained: float, amount_spent: float) -> None:
        if amount_gained < 0:
            raise ValidationError("Amount gained must be 0 or greater")
        if amount_spent < 0:
            raise ValidationError("Amount spent must be 0 or greater")

    def create(
        self,
        actor: Actor,
        book_id: uuid.UUID,
        transaction_date: date,
        amount_gained: float = 0,
        amount_spent: float = 0,
        note: Optional[str] = None,
    ) -> Transaction:
        authorize(actor, Operation.CREATE, Resource.TRANSACTION)
        self._validate_amounts(amount_gained, amount_spent)

        try:
            book = self._require_open_book(book_id, "Cannot add transactions to inactive books")
            self._require_in_window(book, transaction_date)

            transaction = self.transactions.add(
                Transaction(
                    user_id=actor.id,
                    book_id=book.id,
                    transaction_date=transaction_date,
                    amount_gained=amount_gained,
                    amount_spent=amount_spent,
                    note=note,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record_transaction_event("created")
        self.audit.record(
            actor.id, ActionType.TRANSACTION_CREATED, TargetType.TRANSACTION, transaction.id,
            f"Created transaction: ${amount_gained} gained, ${amount_spent} spent",
        )
        return transaction

    def update(
        self,
        actor: Actor,
        transaction_id: uuid.UUID,
        transaction_date: date,
        amount_gained: float,
        amount_spent: float,
        note: Optional[str] = None,
    ) -> Transaction:
        self._validate_amounts(amount_gained, amount_spent)

        try:
            transaction = self._require_transaction(transaction_id)
            self._require_owner(actor, Operation.UPDATE, transaction)
            book = self._require_open_book(
                transaction.book_id, "Cannot edit transactions in inactive or closed books"
            )
            self._require_in_window(book, transaction_date)

            transaction.transaction_date = transaction_date
            transaction.amount_gained = amount_gained
            transaction.amount_spent = amount_spent
            transaction.note = note
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record_transaction_event("updated")
        self.audit.record(
            actor.id, ActionType.TRANSACTION_UPDATED, TargetType.TRANSACTION, transaction.id,
            f"Transaction updated: {transaction.id}",
        )
        return transaction

    def delete(self, actor: Actor, transaction_id: uuid.UUID) -> None:
        try:
            transaction = self._require_transaction(transaction_id)
            self._require_owner(actor, Operation.DELETE, transaction)
            self._require_open_book(
                transaction.book_id, "Cannot delete transactions in inactive or closed books"
            )

            self.transactions.delete(transaction)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record_transaction_event("deleted")
        self.audit.record(
            actor.id, ActionType.TRANSACTION_DELETED, TargetType.TRANSACTION, transaction_id,
            f"Transaction deleted: {transaction_id}",
        )

    # Queries

    def get(self, actor: Actor, transaction_id: uuid.UUID) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        authorize(actor, Operation.READ, Resource.TRANSACTION, owner_id=transaction.user_id)
        return transaction

    def list(
        self,
        actor: Actor,
        book_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> List[Transaction]:
        """Non-admins only ever see their own records"""
        authorize(actor, Operation.LIST, Resource.TRANSACTION)
        return self.transactions.list(book_id=book_id, user_id=scope_user_filter(actor, user_id))
