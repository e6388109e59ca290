"""Unit tests for the access control gate"""

import uuid

import pytest
from weekbook.domain.access import Operation, Resource, authorize, scope_user_filter
from weekbook.domain.exceptions import ForbiddenError, UnauthenticatedError
from weekbook.domain.models import Actor, UserRole, UserStatus


@pytest.fixture
def admin_actor():
    return Actor(id=uuid.uuid4(), role=UserRole.ADMIN, status=UserStatus.ACTIVE)


@pytest.fixture
def user_actor():
    return Actor(id=uuid.uuid4(), role=UserRole.USER, status=UserStatus.ACTIVE)


def test_missing_actor_is_unauthenticated():
    with pytest.raises(UnauthenticatedError):
        authorize(None, Operation.LIST, Resource.BOOK)


@pytest.mark.parametrize("status", [UserStatus.BANNED, UserStatus.REMOVED])
def test_inactive_account_is_forbidden_even_for_admins(status):
    actor = Actor(id=uuid.uuid4(), role=UserRole.ADMIN, status=status)

    with pytest.raises(ForbiddenError, match="Account is not active"):
        authorize(actor, Operation.LIST, Resource.BOOK)


@pytest.mark.parametrize("operation", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
def test_book_mutations_require_admin(user_actor, admin_actor, operation):
    with pytest.raises(ForbiddenError, match="Admin access required"):
        authorize(user_actor, operation, Resource.BOOK)

    assert authorize(admin_actor, operation, Resource.BOOK) is admin_actor


def test_any_active_user_can_read_books(user_actor):
    authorize(user_actor, Operation.LIST, Resource.BOOK)
    authorize(user_actor, Operation.READ, Resource.BOOK)


def test_transaction_update_is_owner_only(user_actor, admin_actor):
    """Admins get no override on other users' transactions"""
    authorize(user_actor, Operation.UPDATE, Resource.TRANSACTION, owner_id=user_actor.id)

    with pytest.raises(ForbiddenError, match="You can only update your own transactions"):
        authorize(admin_actor, Operation.UPDATE, Resource.TRANSACTION, owner_id=user_actor.id)


def test_transaction_delete_is_owner_only(user_actor):
    with pytest.raises(ForbiddenError, match="You can only delete your own transactions"):
        authorize(user_actor, Operation.DELETE, Resource.TRANSACTION, owner_id=uuid.uuid4())


def test_transaction_read_allows_owner_or_admin(user_actor, admin_actor):
    other_id = uuid.uuid4()
    authorize(admin_actor, Operation.READ, Resource.TRANSACTION, owner_id=other_id)
    authorize(user_actor, Operation.READ, Resource.TRANSACTION, owner_id=user_actor.id)

    with pytest.raises(ForbiddenError):
        authorize(user_actor, Operation.READ, Resource.TRANSACTION, owner_id=other_id)


def test_user_management_is_admin_only(user_actor):
    for operation in (Operation.LIST, Operation.CREATE, Operation.UPDATE, Operation.DELETE):
        with pytest.raises(ForbiddenError):
            authorize(user_actor, operation, Resource.USER)

    # Reading your own profile is fine
    authorize(user_actor, Operation.READ, Resource.USER, owner_id=user_actor.id)


def test_action_logs_are_admin_only(user_actor, admin_actor):
    authorize(admin_actor, Operation.LIST, Resource.ACTION_LOG)

    with pytest.raises(ForbiddenError):
        authorize(user_actor, Operation.LIST, Resource.ACTION_LOG)


def test_unlisted_pair_is_denied(admin_actor):
    with pytest.raises(ForbiddenError):
        authorize(admin_actor, Operation.DELETE, Resource.ACTION_LOG)


def test_scope_user_filter(user_actor, admin_actor):
    other_id = uuid.uuid4()

    assert scope_user_filter(admin_actor, None) is None
    assert scope_user_filter(admin_actor, other_id) == other_id
    assert scope_user_filter(user_actor, None) == user_actor.id
    assert scope_user_filter(user_actor, user_actor.id) == user_actor.id

    with pytest.raises(ForbiddenError, match="your own transactions"):
        scope_user_filter(user_actor, other_id)
