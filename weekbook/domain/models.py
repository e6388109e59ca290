"""Domain models - enums and plain dataclasses shared across layers"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BANNED = "BANNED"
    REMOVED = "REMOVED"


class BookStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CLOSED = "CLOSED"


class ActionType(str, enum.Enum):
    """Kinds of state change recorded in the audit trail"""

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_REMOVED = "USER_REMOVED"
    USER_BANNED = "USER_BANNED"
    BOOK_CREATED = "BOOK_CREATED"
    BOOK_UPDATED = "BOOK_UPDATED"
    BOOK_CLOSED = "BOOK_CLOSED"
    BOOK_DELETED = "BOOK_DELETED"
    TRANSACTION_CREATED = "TRANSACTION_CREATED"
    TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
    TRANSACTION_DELETED = "TRANSACTION_DELETED"


class TargetType(str, enum.Enum):
    USER = "USER"
    BOOK = "BOOK"
    TRANSACTION = "TRANSACTION"


@dataclass(frozen=True)
class Actor:
    """Authenticated identity handed to every core operation"""

    id: uuid.UUID
    role: UserRole
    status: UserStatus

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class BookWindow:
    """Start/end dates and title for a book that has not been persisted yet"""

    title: str
    start_date: date
    end_date: date
    duration_days: int


@dataclass
class Totals:
    """Aggregate gain/spend figures"""

    total_gained: float = 0.0
    total_spent: float = 0.0
    transaction_count: int = 0

    @property
    def net(self) -> float:
        return round(self.total_gained - self.total_spent, 2)


@dataclass
class NotificationIntent:
    """One recipient to be told about a newly opened book"""

    recipient_id: uuid.UUID
    book_id: uuid.UUID


@dataclass
class NotificationBatch:
    """Intents for one book plus the context a dispatcher needs to render them"""

    book_id: uuid.UUID
    book_title: str
    start_date: date
    end_date: date
    intents: List[NotificationIntent] = field(default_factory=list)
