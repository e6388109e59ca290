"""Audit log writer - records every state-changing action after it commits"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weekbook.domain.access import Operation, Resource, authorize
from weekbook.domain.models import Actor, ActionType, TargetType
from weekbook.infrastructure.database.models import ActionLog
from weekbook.infrastructure.database.repositories import ActionLogRepository
from weekbook.infrastructure.observability.metrics import audit_write_failures_counter

logger = logging.getLogger(__name__)


class AuditLogWriter:
    """
    Append-only sink for ActionLog entries.

    Must be called after the primary mutation has been committed. A failed
    write is rolled back on its own, logged and counted; the mutation that
    preceded it stays in place and no error reaches the caller.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ActionLogRepository(db)

    def record(
        self,
        actor_id: uuid.UUID,
        action_type: ActionType,
        target_type: TargetType,
        target_id: uuid.UUID,
        details: str,
    ) -> Optional[ActionLog]:
        try:
            entry = self.repo.append(
                actor_id=actor_id,
                action_type=action_type,
                target_type=target_type,
                target_id=target_id,
                details=details,
            )
            self.db.commit()
            return entry
        except SQLAlchemyError:
            self.db.rollback()
            audit_write_failures_counter.inc()
            logger.exception(
                "Failed to write action log",
                extra={
                    "action_type": action_type.value,
                    "target_type": target_type.value,
                    "target_id": str(target_id),
                },
            )
            return None


def list_action_logs(
    db: Session,
    actor: Actor,
    action_type: Optional[ActionType] = None,
    target_type: Optional[TargetType] = None,
    limit: int = 100,
) -> List[ActionLog]:
    """Most recent audit entries, admins only"""
    authorize(actor, Operation.LIST, Resource.ACTION_LOG)
    return ActionLogRepository(db).list(action_type=action_type, target_type=target_type, limit=limit)
