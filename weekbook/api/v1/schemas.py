"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from weekbook.domain.models import ActionType, BookStatus, TargetType, UserRole, UserStatus
from weekbook.utils.security import PASSWORD_TOO_LONG_MESSAGE, password_fits_bcrypt


class MessageResponse(BaseModel):
    message: str


# Auth / users


class SignupRequest(BaseModel):
    """Request body for POST /v1/auth/signup"""

    username: str = Field(..., min_length=3, max_length=20)
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        if not password_fits_bcrypt(value):
            raise ValueError(PASSWORD_TOO_LONG_MESSAGE)
        return value


class UserCreateRequest(SignupRequest):
    """Request body for POST /v1/users (admin)"""

    role: UserRole = UserRole.USER


class UserUpdateRequest(BaseModel):
    """Request body for PUT /v1/users/{user_id}"""

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    role: UserRole
    status: UserStatus


class TokenRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """User without credentials"""

    id: uuid.UUID
    username: str
    name: str
    email: str
    role: UserRole
    status: UserStatus
    created_at: datetime
    transaction_count: Optional[int] = None


# Books


class BookCreateRequest(BaseModel):
    """Request body for POST /v1/books"""

    title: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    duration_days: Optional[int] = Field(None, gt=0)


class BookUpdateRequest(BaseModel):
    """Request body for PUT /v1/books/{book_id}"""

    title: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    status: BookStatus


class BookResponse(BaseModel):
    id: uuid.UUID
    title: str
    start_date: date
    end_date: date
    duration_days: int
    status: BookStatus
    created_by: uuid.UUID
    creator_name: Optional[str] = None
    transaction_count: Optional[int] = None
    is_overdue: bool = False
    created_at: datetime


# Transactions


class TransactionCreateRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    book_id: uuid.UUID
    transaction_date: date
    amount_gained: float = Field(0, ge=0, description="Amount gained must be 0 or greater")
    amount_spent: float = Field(0, ge=0, description="Amount spent must be 0 or greater")
    note: Optional[str] = Field(None, max_length=500)


class TransactionUpdateRequest(BaseModel):
    """Request body for PUT /v1/transactions/{transaction_id}"""

    transaction_date: date
    amount_gained: float = Field(..., ge=0)
    amount_spent: float = Field(..., ge=0)
    note: Optional[str] = Field(None, max_length=500)


class TransactionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    book_id: uuid.UUID
    transaction_date: date
    amount_gained: float
    amount_spent: float
    note: Optional[str] = None
    user_name: Optional[str] = None
    book_title: Optional[str] = None
    book_status: Optional[BookStatus] = None
    created_at: datetime


# Read models


class TotalsSchema(BaseModel):
    total_gained: float
    total_spent: float
    net: float
    transaction_count: int


class BookReportResponse(BaseModel):
    """Response for GET /v1/books/{book_id}/report"""

    book: BookResponse
    transactions: List[TransactionResponse]
    totals: TotalsSchema


class DashboardSummaryResponse(BaseModel):
    total_books: int
    active_books: int
    total_users: int
    active_users: int
    totals: TotalsSchema
    overdue_books: List[BookResponse]
    upcoming_books: List[BookResponse]


class ActionLogResponse(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID
    actor_name: Optional[str] = None
    action_type: ActionType
    target_type: TargetType
    target_id: uuid.UUID
    details: Optional[str] = None
    created_at: datetime
