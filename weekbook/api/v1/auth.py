"""POST /v1/auth/* - signup, token issue and current actor"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from weekbook.api.dependencies import get_current_actor
from weekbook.api.v1.schemas import SignupRequest, TokenRequest, TokenResponse, UserResponse
from weekbook.api.v1.serializers import user_response
from weekbook.domain.models import Actor
from weekbook.infrastructure.database.session import get_db
from weekbook.services import users as user_service
from weekbook.utils.security import create_access_token

router = APIRouter()


@router.post("/auth/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(request_body: SignupRequest, db: Session = Depends(get_db)):
    """Self-registration. New accounts are always plain users"""
    user = user_service.signup(
        db,
        username=request_body.username,
        name=request_body.name,
        email=request_body.email,
        password=request_body.password,
    )
    return user_response(user)


@router.post("/auth/token", response_model=TokenResponse)
def issue_token(request_body: TokenRequest, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, request_body.username, request_body.password)
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/auth/me", response_model=UserResponse)
def current_user(actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    return user_response(user_service.get_user(db, actor, actor.id))
