"""Structured JSON logging for production observability"""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from weekbook.config import settings

book_logger = logging.getLogger("weekbook.books")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Adds timestamp, level and service name to every record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Route everything through one JSON handler on stdout"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    # SQL echo is far too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def log_book_transition(
    book_id: uuid.UUID,
    title: str,
    from_status: Optional[str],
    to_status: str,
    actor_id: uuid.UUID,
) -> None:
    """One line per book status change, for lifecycle dashboards"""
    book_logger.info(
        "Book %s: %s -> %s",
        title,
        from_status or "NEW",
        to_status,
        extra={
            "book_id": str(book_id),
            "from_status": from_status,
            "to_status": to_status,
            "actor_id": str(actor_id),
        },
    )
