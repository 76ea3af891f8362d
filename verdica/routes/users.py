"""
API routes for registering and listing users.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from verdica.database import get_db
from verdica.errors import ConflictError, VerdicaError, to_http_exception
from verdica.models import CreateUserRequest, UserResponse
from verdica.store import RecordStore


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db)) -> List[UserResponse]:
    """Get all registered users."""
    try:
        users = RecordStore(db).list_users()
    except VerdicaError as e:
        raise to_http_exception(e)
    return [UserResponse.model_validate(u) for u in users]


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    request: CreateUserRequest,
    db: Session = Depends(get_db)
) -> UserResponse:
    """Register a new user. Usernames are unique."""
    try:
        user = RecordStore(db).create_user(request.username)
    except ConflictError:
        raise HTTPException(status_code=409, detail="username already taken")
    except VerdicaError as e:
        raise to_http_exception(e)
    return UserResponse.model_validate(user)
