"""Unit tests for TransactionAdmissionController"""

import uuid

import pytest
from datetime import date
from weekbook.domain.exceptions import ForbiddenError, NotFoundError, RangeError, StateError, ValidationError
from weekbook.domain.models import ActionType, BookStatus, UserStatus
from weekbook.infrastructure.database.models import Book, Transaction
from weekbook.infrastructure.database.repositories import ActionLogRepository
from weekbook.services.transactions import TransactionAdmissionController
from weekbook.services.users import to_actor


@pytest.fixture
def controller(db):
    return TransactionAdmissionController(db)


@pytest.fixture
def member_transaction(controller, member_actor, book_a):
    return controller.create(member_actor, book_a.id, date(2025, 7, 3), amount_gained=100, amount_spent=40)


def _close(db, book: Book) -> None:
    book.status = BookStatus.CLOSED
    db.commit()


class TestCreate:
    def test_admits_transaction_inside_active_book(self, db, controller, member_actor, book_a):
        transaction = controller.create(
            member_actor, book_a.id, date(2025, 7, 3), amount_gained=100, amount_spent=40, note="market"
        )

        assert transaction.user_id == member_actor.id
        assert transaction.book_id == book_a.id
        assert transaction.amount_gained == 100
        assert transaction.amount_spent == 40

        logs = ActionLogRepository(db).list(action_type=ActionType.TRANSACTION_CREATED)
        assert len(logs) == 1
        assert logs[0].actor_id == member_actor.id
        assert logs[0].details == "Created transaction: $100 gained, $40 spent"

    def test_book_boundaries_are_inclusive(self, controller, member_actor, book_a):
        controller.create(member_actor, book_a.id, date(2025, 7, 1), amount_gained=1)
        controller.create(member_actor, book_a.id, date(2025, 7, 7), amount_spent=1)

    def test_rejects_date_outside_book(self, db, controller, member_actor, book_a):
        with pytest.raises(RangeError, match="within the book period"):
            controller.create(member_actor, book_a.id, date(2025, 7, 8), amount_gained=5)

        assert db.query(Transaction).count() == 0

    def test_rejects_inactive_book(self, db, controller, member_actor, make_book):
        book = make_book(date(2025, 6, 1), date(2025, 6, 7), status=BookStatus.INACTIVE)

        with pytest.raises(StateError, match="Cannot add transactions to inactive books"):
            controller.create(member_actor, book.id, date(2025, 6, 2), amount_gained=5)

    def test_state_is_checked_before_range(self, db, controller, member_actor, book_a):
        _close(db, book_a)

        with pytest.raises(StateError):
            controller.create(member_actor, book_a.id, date(2025, 8, 1), amount_gained=5)

    def test_rejects_unknown_book(self, controller, member_actor):
        with pytest.raises(NotFoundError, match="Book not found"):
            controller.create(member_actor, uuid.uuid4(), date(2025, 7, 3))

    def test_rejects_negative_amounts(self, controller, member_actor, book_a):
        with pytest.raises(ValidationError, match="Amount spent"):
            controller.create(member_actor, book_a.id, date(2025, 7, 3), amount_spent=-1)

    def test_banned_user_cannot_log(self, controller, make_user, book_a):
        banned = to_actor(make_user("zed", status=UserStatus.BANNED))

        with pytest.raises(ForbiddenError, match="Account is not active"):
            controller.create(banned, book_a.id, date(2025, 7, 3), amount_gained=1)


class TestUpdate:
    def test_owner_can_edit(self, db, controller, member_actor, member_transaction):
        updated = controller.update(
            member_actor, member_transaction.id, date(2025, 7, 4), amount_gained=120, amount_spent=0, note="fixed"
        )

        assert updated.transaction_date == date(2025, 7, 4)
        assert updated.amount_gained == 120
        assert updated.note == "fixed"

        logs = ActionLogRepository(db).list(action_type=ActionType.TRANSACTION_UPDATED)
        assert [log.target_id for log in logs] == [member_transaction.id]

    def test_admin_gets_no_override(self, controller, admin, member_transaction):
        with pytest.raises(ForbiddenError, match="You can only update your own transactions"):
            controller.update(admin, member_transaction.id, date(2025, 7, 4), 1, 1)

    def test_other_user_is_forbidden(self, controller, other_actor, member_transaction):
        with pytest.raises(ForbiddenError):
            controller.update(other_actor, member_transaction.id, date(2025, 7, 4), 1, 1)

    def test_closed_book_blocks_edits(self, db, controller, member_actor, member_transaction, book_a):
        _close(db, book_a)

        with pytest.raises(StateError, match="inactive or closed books"):
            controller.update(member_actor, member_transaction.id, date(2025, 7, 4), 1, 1)

    def test_ownership_is_checked_before_state(self, db, controller, other_actor, member_transaction, book_a):
        _close(db, book_a)

        with pytest.raises(ForbiddenError):
            controller.update(other_actor, member_transaction.id, date(2025, 7, 4), 1, 1)

    def test_date_must_stay_inside_book(self, db, controller, member_actor, member_transaction):
        with pytest.raises(RangeError):
            controller.update(member_actor, member_transaction.id, date(2025, 6, 30), 1, 1)

        db.refresh(member_transaction)
        assert member_transaction.transaction_date == date(2025, 7, 3)

    def test_unknown_transaction(self, controller, member_actor, book_a):
        with pytest.raises(NotFoundError, match="Transaction not found"):
            controller.update(member_actor, uuid.uuid4(), date(2025, 7, 4), 1, 1)


class TestDelete:
    def test_owner_can_delete(self, db, controller, member_actor, member_transaction):
        transaction_id = member_transaction.id
        controller.delete(member_actor, transaction_id)

        assert db.get(Transaction, transaction_id) is None
        logs = ActionLogRepository(db).list(action_type=ActionType.TRANSACTION_DELETED)
        assert [log.target_id for log in logs] == [transaction_id]

    def test_admin_cannot_delete_others(self, db, controller, admin, member_transaction):
        with pytest.raises(ForbiddenError, match="You can only delete your own transactions"):
            controller.delete(admin, member_transaction.id)

        assert db.get(Transaction, member_transaction.id) is not None

    def test_closed_book_blocks_delete(self, db, controller, member_actor, member_transaction, book_a):
        _close(db, book_a)

        with pytest.raises(StateError):
            controller.delete(member_actor, member_transaction.id)


class TestQueries:
    def test_member_sees_only_own_transactions(self, controller, member_actor, other_actor, admin, book_a):
        mine = controller.create(member_actor, book_a.id, date(2025, 7, 2), amount_gained=10)
        theirs = controller.create(other_actor, book_a.id, date(2025, 7, 3), amount_spent=5)

        assert [t.id for t in controller.list(member_actor)] == [mine.id]
        assert {t.id for t in controller.list(admin)} == {mine.id, theirs.id}
        assert [t.id for t in controller.list(admin, user_id=other_actor.id)] == [theirs.id]

        with pytest.raises(ForbiddenError):
            controller.list(member_actor, user_id=other_actor.id)

    def test_get_is_owner_or_admin(self, controller, admin, other_actor, member_transaction):
        assert controller.get(admin, member_transaction.id).id == member_transaction.id

        with pytest.raises(ForbiddenError):
            controller.get(other_actor, member_transaction.id)
