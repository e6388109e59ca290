"""Access control gate - one policy table for every (operation, resource) pair"""

import enum
import uuid
from typing import Dict, Optional, Tuple

from weekbook.domain.exceptions import ForbiddenError, UnauthenticatedError
from weekbook.domain.models import Actor, UserStatus


class Operation(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"


class Resource(str, enum.Enum):
    BOOK = "book"
    TRANSACTION = "transaction"
    USER = "user"
    ACTION_LOG = "action_log"
    REPORT = "report"
    DASHBOARD = "dashboard"


class Rule(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    OWNER = "owner"  # no admin override
    OWNER_OR_ADMIN = "owner_or_admin"


POLICIES: Dict[Tuple[Operation, Resource], Rule] = {
    # Books: anyone may read, only admins change them
    (Operation.LIST, Resource.BOOK): Rule.AUTHENTICATED,
    (Operation.READ, Resource.BOOK): Rule.AUTHENTICATED,
    (Operation.CREATE, Resource.BOOK): Rule.ADMIN,
    (Operation.UPDATE, Resource.BOOK): Rule.ADMIN,
    (Operation.DELETE, Resource.BOOK): Rule.ADMIN,
    # Transactions: mutations belong to the owning user only
    (Operation.LIST, Resource.TRANSACTION): Rule.AUTHENTICATED,
    (Operation.READ, Resource.TRANSACTION): Rule.OWNER_OR_ADMIN,
    (Operation.CREATE, Resource.TRANSACTION): Rule.AUTHENTICATED,
    (Operation.UPDATE, Resource.TRANSACTION): Rule.OWNER,
    (Operation.DELETE, Resource.TRANSACTION): Rule.OWNER,
    # User management
    (Operation.LIST, Resource.USER): Rule.ADMIN,
    (Operation.READ, Resource.USER): Rule.OWNER_OR_ADMIN,
    (Operation.CREATE, Resource.USER): Rule.ADMIN,
    (Operation.UPDATE, Resource.USER): Rule.ADMIN,
    (Operation.DELETE, Resource.USER): Rule.ADMIN,
    # Read models
    (Operation.LIST, Resource.ACTION_LOG): Rule.ADMIN,
    (Operation.READ, Resource.REPORT): Rule.AUTHENTICATED,
    (Operation.READ, Resource.DASHBOARD): Rule.AUTHENTICATED,
}


def authorize(
    actor: Optional[Actor],
    operation: Operation,
    resource: Resource,
    owner_id: Optional[uuid.UUID] = None,
) -> Actor:
    """
    Check that actor may perform operation on resource.

    Args:
        actor: Authenticated identity, or None when the request carried no session
        operation: What is being attempted
        resource: Kind of record being touched
        owner_id: Owning user of the record, for ownership rules

    Returns:
        The actor, so callers can chain the check

    Raises:
        UnauthenticatedError: No actor
        ForbiddenError: Inactive account, missing role, or not the owner
    """
    if actor is None:
        raise UnauthenticatedError()

    if actor.status != UserStatus.ACTIVE:
        raise ForbiddenError("Forbidden: Account is not active")

    # Unlisted pairs are denied
    rule = POLICIES.get((operation, resource))
    if rule is None:
        raise ForbiddenError()

    if rule == Rule.ADMIN and not actor.is_admin:
        raise ForbiddenError("Forbidden: Admin access required")

    if rule == Rule.OWNER and owner_id != actor.id:
        raise ForbiddenError(f"Forbidden: You can only {operation.value} your own {resource.value}s")

    if rule == Rule.OWNER_OR_ADMIN and not actor.is_admin and owner_id != actor.id:
        raise ForbiddenError(f"Forbidden: You can only {operation.value} your own {resource.value}s")

    return actor


def scope_user_filter(actor: Actor, requested_user_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
    """
    Resolve which user's transactions a listing may show.

    Admins get what they asked for (None = everyone). Everyone else is pinned
    to their own records and may not ask for someone else's.
    """
    if actor.is_admin:
        return requested_user_id

    if requested_user_id is not None and requested_user_id != actor.id:
        raise ForbiddenError("Forbidden: You can only view your own transactions")

    return actor.id
