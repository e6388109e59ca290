"""User accounts - signup, admin management and the reserved system actor"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from weekbook.config import settings
from weekbook.domain.access import Operation, Resource, authorize
from weekbook.domain.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError
from weekbook.domain.models import Actor, ActionType, TargetType, UserRole, UserStatus
from weekbook.infrastructure.database.models import User
from weekbook.infrastructure.database.repositories import TransactionRepository, UserRepository
from weekbook.services.audit import AuditLogWriter
from weekbook.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

SYSTEM_USERNAME = "system"
SYSTEM_EMAIL = "system@weekbook.invalid"


def to_actor(user: User) -> Actor:
    return Actor(id=user.id, role=UserRole(user.role), status=UserStatus(user.status))


def ensure_system_actor(db: Session) -> User:
    """
    Return the reserved actor used for automated actions, creating it on first use.

    The system actor has no password hash, so it can never authenticate.
    """
    users = UserRepository(db)
    system = users.get_system_user()
    if system is not None:
        return system

    try:
        system = users.add(
            User(
                username=SYSTEM_USERNAME,
                email=SYSTEM_EMAIL,
                name="System",
                password_hash=None,
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
                is_system=True,
            )
        )
        db.commit()
        logger.info("Created system actor", extra={"user_id": str(system.id)})
        return system
    except IntegrityError:
        # Another process created it first
        db.rollback()
        system = users.get_system_user()
        if system is None:
            raise
        return system


def ensure_bootstrap_admin(db: Session) -> Optional[User]:
    """Create the configured first admin when no human admin exists yet"""
    if not (
        settings.bootstrap_admin_username
        and settings.bootstrap_admin_email
        and settings.bootstrap_admin_password
    ):
        return None

    users = UserRepository(db)
    if users.get_any_admin() is not None:
        return None

    system = ensure_system_actor(db)
    admin = _insert_user(
        db,
        username=settings.bootstrap_admin_username,
        name="Administrator",
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        role=UserRole.ADMIN,
    )
    AuditLogWriter(db).record(
        system.id, ActionType.USER_CREATED, TargetType.USER, admin.id,
        f"Bootstrap admin created: {admin.username}",
    )
    return admin


def _insert_user(db: Session, username: str, name: str, email: str, password: str, role: UserRole) -> User:
    users = UserRepository(db)
    if users.find_by_username_or_email(username, email) is not None:
        raise ConflictError("Username or email already exists")

    try:
        user = users.add(
            User(
                username=username,
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=role,
                status=UserStatus.ACTIVE,
            )
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Username or email already exists") from e
    return user


def signup(db: Session, username: str, name: str, email: str, password: str) -> User:
    """Self-registration. Always yields a USER; the system actor is logged as the actor"""
    user = _insert_user(db, username, name, email, password, UserRole.USER)
    system = ensure_system_actor(db)
    AuditLogWriter(db).record(
        system.id, ActionType.USER_CREATED, TargetType.USER, user.id,
        f"User registered: {user.username}",
    )
    return user


def create_user(
    db: Session,
    actor: Actor,
    username: str,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    authorize(actor, Operation.CREATE, Resource.USER)
    user = _insert_user(db, username, name, email, password, role)
    AuditLogWriter(db).record(
        actor.id, ActionType.USER_CREATED, TargetType.USER, user.id,
        f"User created: {user.username}",
    )
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """Verify credentials for the token endpoint"""
    user = UserRepository(db).get_by_username(username)
    if user is None or user.is_system or not verify_password(password, user.password_hash):
        raise UnauthenticatedError("Invalid username or password")
    if user.status != UserStatus.ACTIVE:
        raise ForbiddenError("Forbidden: Account is not active")
    return user


def get_user(db: Session, actor: Actor, user_id: uuid.UUID) -> User:
    user = UserRepository(db).get(user_id)
    if user is None or user.is_system:
        raise NotFoundError("User", user_id)
    authorize(actor, Operation.READ, Resource.USER, owner_id=user.id)
    return user


def list_users(db: Session, actor: Actor) -> List[Tuple[User, int]]:
    authorize(actor, Operation.LIST, Resource.USER)
    return UserRepository(db).list_with_transaction_counts()


def update_user(
    db: Session,
    actor: Actor,
    user_id: uuid.UUID,
    name: str,
    email: str,
    role: UserRole,
    status: UserStatus,
) -> User:
    """
    Admin edit of profile, role and status.

    Emits USER_BANNED when the edit bans the account, USER_UPDATED otherwise.
    """
    authorize(actor, Operation.UPDATE, Resource.USER)

    users = UserRepository(db)
    user = users.get(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if user.is_system:
        raise ForbiddenError("Forbidden: The system account cannot be modified")

    if email != user.email:
        existing = users.get_by_email(email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("Email already exists")

    was_banned = user.status == UserStatus.BANNED
    user.name = name
    user.email = email
    user.role = role
    user.status = status

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email already exists") from e

    if status == UserStatus.BANNED and not was_banned:
        action, details = ActionType.USER_BANNED, f"User banned: {user.username}"
    else:
        action, details = ActionType.USER_UPDATED, f"User updated: {user.username}"
    AuditLogWriter(db).record(actor.id, action, TargetType.USER, user.id, details)
    return user


def delete_user(db: Session, actor: Actor, user_id: uuid.UUID) -> None:
    """
    Hard-delete an account that has left no trace in the books.

    Accounts owning transactions, having created books or appearing as an
    actor in the audit trail are kept; set their status to REMOVED instead.
    """
    authorize(actor, Operation.DELETE, Resource.USER)

    if user_id == actor.id:
        raise ForbiddenError("Cannot delete your own account")

    users = UserRepository(db)
    user = users.get(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if user.is_system:
        raise ForbiddenError("Forbidden: The system account cannot be deleted")

    if TransactionRepository(db).count_for_user(user.id) > 0:
        raise ConflictError("Cannot delete user with existing transactions")
    if users.has_books(user.id) or users.has_action_logs(user.id):
        raise ConflictError("Cannot delete user with recorded activity; set status to REMOVED instead")

    username = user.username
    try:
        users.delete(user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Cannot delete user with existing references") from e

    AuditLogWriter(db).record(
        actor.id, ActionType.USER_REMOVED, TargetType.USER, user_id,
        f"User deleted: {username}",
    )
