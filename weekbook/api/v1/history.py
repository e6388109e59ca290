"""GET /v1/action-logs and /v1/dashboard/summary - audit history and dashboard read models"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from weekbook.api.dependencies import get_current_actor
from weekbook.api.v1.schemas import ActionLogResponse, DashboardSummaryResponse
from weekbook.api.v1.serializers import action_log_response, book_response, totals_schema
from weekbook.domain.models import Actor, ActionType, TargetType
from weekbook.infrastructure.database.session import get_db
from weekbook.services.audit import list_action_logs
from weekbook.services.reports import dashboard_summary

router = APIRouter()


@router.get("/action-logs", response_model=List[ActionLogResponse])
def get_action_logs(
    action_type: Optional[ActionType] = Query(None),
    target_type: Optional[TargetType] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Retrieve the most recent audit entries (admin only).

    Returns:
        Entries newest first, each with the acting user's name
    """
    entries = list_action_logs(db, actor, action_type=action_type, target_type=target_type, limit=limit)
    return [action_log_response(entry) for entry in entries]


@router.get("/dashboard/summary", response_model=DashboardSummaryResponse)
def get_dashboard_summary(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    summary = dashboard_summary(db, actor)
    return DashboardSummaryResponse(
        total_books=summary.total_books,
        active_books=summary.active_books,
        total_users=summary.total_users,
        active_users=summary.active_users,
        totals=totals_schema(summary.totals),
        overdue_books=[book_response(book) for book in summary.overdue_books],
        upcoming_books=[book_response(book) for book in summary.upcoming_books],
    )
