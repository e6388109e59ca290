"""Unit tests for account management and the system actor"""

import uuid

import pytest
from datetime import date
from weekbook.config import settings
from weekbook.domain.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError, ValidationError
from weekbook.domain.models import ActionType, TargetType, UserRole, UserStatus
from weekbook.infrastructure.database.models import Transaction, User
from weekbook.infrastructure.database.repositories import ActionLogRepository
from weekbook.services import users


def test_system_actor_is_created_once(db):
    first = users.ensure_system_actor(db)
    second = users.ensure_system_actor(db)

    assert first.id == second.id
    assert first.is_system
    assert first.password_hash is None
    assert db.query(User).filter(User.is_system.is_(True)).count() == 1


def test_signup_creates_user_logged_by_system_actor(db):
    user = users.signup(db, "walter", "Walter", "walter@example.com", "secret123")

    assert user.role == UserRole.USER
    assert user.status == UserStatus.ACTIVE
    assert user.password_hash != "secret123"

    logs = ActionLogRepository(db).list(action_type=ActionType.USER_CREATED)
    assert len(logs) == 1
    assert logs[0].actor.is_system
    assert logs[0].target_id == user.id
    assert logs[0].details == "User registered: walter"


def test_signup_rejects_duplicates(db, member):
    with pytest.raises(ConflictError, match="Username or email already exists"):
        users.signup(db, "xavier", "Other", "new@example.com", "secret123")
    with pytest.raises(ConflictError):
        users.signup(db, "newname", "Other", "xavier@example.com", "secret123")


def test_multibyte_password_over_bcrypt_limit(db, member):
    # 30 characters, 120 bytes
    password = "\U0001F600" * 30

    with pytest.raises(ValidationError, match="at most 72 bytes"):
        users.signup(db, "walter", "Walter", "walter@example.com", password)
    assert db.query(User).filter(User.username == "walter").count() == 0

    with pytest.raises(UnauthenticatedError):
        users.authenticate(db, "xavier", password)


def test_authenticate(db, member, make_user):
    assert users.authenticate(db, "xavier", "secret123").id == member.id

    with pytest.raises(UnauthenticatedError):
        users.authenticate(db, "xavier", "wrong")
    with pytest.raises(UnauthenticatedError):
        users.authenticate(db, "nobody", "secret123")

    make_user("banned", status=UserStatus.BANNED)
    with pytest.raises(ForbiddenError, match="not active"):
        users.authenticate(db, "banned", "secret123")


def test_system_actor_cannot_authenticate(db, system_user):
    with pytest.raises(UnauthenticatedError):
        users.authenticate(db, users.SYSTEM_USERNAME, "")


def test_admin_creates_user(db, admin):
    user = users.create_user(db, admin, "victor", "Victor", "victor@example.com", "secret123", role=UserRole.ADMIN)

    assert user.role == UserRole.ADMIN
    logs = ActionLogRepository(db).list(action_type=ActionType.USER_CREATED)
    assert logs[0].actor_id == admin.id


def test_member_cannot_manage_users(db, member_actor, other_member):
    with pytest.raises(ForbiddenError):
        users.create_user(db, member_actor, "victor", "Victor", "victor@example.com", "secret123")
    with pytest.raises(ForbiddenError):
        users.list_users(db, member_actor)
    with pytest.raises(ForbiddenError):
        users.get_user(db, member_actor, other_member.id)


def test_list_users_hides_system_actor(db, admin, member, system_user):
    listed = {user.username: count for user, count in users.list_users(db, admin)}

    assert listed == {"admin": 0, "xavier": 0}


def test_ban_emits_user_banned(db, admin, member):
    users.update_user(db, admin, member.id, member.name, member.email, UserRole.USER, UserStatus.BANNED)

    db.refresh(member)
    assert member.status == UserStatus.BANNED
    logs = ActionLogRepository(db).list(target_id=member.id)
    assert [log.action_type for log in logs] == [ActionType.USER_BANNED]


def test_profile_edit_emits_user_updated(db, admin, member):
    users.update_user(db, admin, member.id, "Xavier X", "xx@example.com", UserRole.USER, UserStatus.ACTIVE)

    logs = ActionLogRepository(db).list(target_id=member.id)
    assert [log.action_type for log in logs] == [ActionType.USER_UPDATED]


def test_update_rejects_taken_email(db, admin, member, other_member):
    with pytest.raises(ConflictError, match="Email already exists"):
        users.update_user(db, admin, member.id, member.name, other_member.email, UserRole.USER, UserStatus.ACTIVE)


def test_system_actor_cannot_be_modified(db, admin, system_user):
    with pytest.raises(ForbiddenError):
        users.update_user(
            db, admin, system_user.id, "Root", system_user.email, UserRole.ADMIN, UserStatus.ACTIVE
        )


class TestDelete:
    def test_deletes_untouched_account(self, db, admin, member):
        member_id = member.id
        users.delete_user(db, admin, member_id)

        assert db.get(User, member_id) is None
        logs = ActionLogRepository(db).list(action_type=ActionType.USER_REMOVED)
        assert logs[0].target_id == member_id

    def test_cannot_delete_self(self, db, admin):
        with pytest.raises(ForbiddenError, match="Cannot delete your own account"):
            users.delete_user(db, admin, admin.id)

    def test_owner_of_transactions_is_kept(self, db, admin, member, book_a):
        db.add(Transaction(user_id=member.id, book_id=book_a.id, transaction_date=date(2025, 7, 2), amount_gained=1))
        db.commit()

        with pytest.raises(ConflictError, match="existing transactions"):
            users.delete_user(db, admin, member.id)

    def test_audited_actor_is_kept(self, db, admin, member):
        ActionLogRepository(db).append(
            actor_id=member.id,
            action_type=ActionType.USER_UPDATED,
            target_type=TargetType.USER,
            target_id=member.id,
            details="profile touched",
        )
        db.commit()

        with pytest.raises(ConflictError, match="set status to REMOVED"):
            users.delete_user(db, admin, member.id)

    def test_missing_user(self, db, admin):
        with pytest.raises(NotFoundError):
            users.delete_user(db, admin, uuid.uuid4())


def test_bootstrap_admin(db, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_username", "root")
    monkeypatch.setattr(settings, "bootstrap_admin_email", "root@example.com")
    monkeypatch.setattr(settings, "bootstrap_admin_password", "rootpass")

    admin = users.ensure_bootstrap_admin(db)

    assert admin is not None
    assert admin.role == UserRole.ADMIN
    assert users.authenticate(db, "root", "rootpass").id == admin.id
    # Second startup finds the admin and does nothing
    assert users.ensure_bootstrap_admin(db) is None


def test_bootstrap_admin_skipped_when_unconfigured(db, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_username", None)

    assert users.ensure_bootstrap_admin(db) is None
    assert db.query(User).count() == 0
