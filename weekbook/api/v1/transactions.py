"""/v1/transactions - transaction admission and listing"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from weekbook.api.dependencies import get_current_actor
from weekbook.api.v1.schemas import (
    MessageResponse,
    TransactionCreateRequest,
    TransactionResponse,
    TransactionUpdateRequest,
)
from weekbook.api.v1.serializers import transaction_response
from weekbook.domain.models import Actor
from weekbook.infrastructure.database.session import get_db
from weekbook.services.transactions import TransactionAdmissionController

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    request_body: TransactionCreateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """
    Log a transaction for the calling user.

    The book must be ACTIVE and the date inside its window.
    """
    transaction = TransactionAdmissionController(db).create(
        actor,
        book_id=request_body.book_id,
        transaction_date=request_body.transaction_date,
        amount_gained=request_body.amount_gained,
        amount_spent=request_body.amount_spent,
        note=request_body.note,
    )
    return transaction_response(transaction)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    book_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    transactions = TransactionAdmissionController(db).list(actor, book_id=book_id, user_id=user_id)
    return [transaction_response(t) for t in transactions]


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return transaction_response(TransactionAdmissionController(db).get(actor, transaction_id))


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: uuid.UUID,
    request_body: TransactionUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    transaction = TransactionAdmissionController(db).update(
        actor,
        transaction_id,
        transaction_date=request_body.transaction_date,
        amount_gained=request_body.amount_gained,
        amount_spent=request_body.amount_spent,
        note=request_body.note,
    )
    return transaction_response(transaction)


@router.delete("/transactions/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    TransactionAdmissionController(db).delete(actor, transaction_id)
    return MessageResponse(message="Transaction deleted successfully")
