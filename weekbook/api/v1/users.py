"""/v1/users - admin user management"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from weekbook.api.dependencies import get_current_actor
from weekbook.api.v1.schemas import MessageResponse, UserCreateRequest, UserResponse, UserUpdateRequest
from weekbook.api.v1.serializers import user_response
from weekbook.domain.models import Actor
from weekbook.infrastructure.database.session import get_db
from weekbook.services import users as user_service

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
def list_users(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return [user_response(user, count) for user, count in user_service.list_users(db, actor)]


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request_body: UserCreateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    user = user_service.create_user(
        db,
        actor,
        username=request_body.username,
        name=request_body.name,
        email=request_body.email,
        password=request_body.password,
        role=request_body.role,
    )
    return user_response(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return user_response(user_service.get_user(db, actor, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: uuid.UUID,
    request_body: UserUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    user = user_service.update_user(
        db,
        actor,
        user_id,
        name=request_body.name,
        email=request_body.email,
        role=request_body.role,
        status=request_body.status,
    )
    return user_response(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: uuid.UUID, actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    user_service.delete_user(db, actor, user_id)
    return MessageResponse(message="User deleted successfully")
