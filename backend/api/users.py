"""Users API — registration, profile changes, deletion, login."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.user import DeleteResponse, LoginRequest, UserCreate, UserOut, UserUpdate
from services import accounts

router = APIRouter()

_errors = {400: {"description": "Validation error"}}
_not_found = {404: {"description": "User not found"}}


@router.post("", response_model=UserOut, status_code=201, responses=_errors)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    user = accounts.register(db, payload.email, payload.password)
    return UserOut.model_validate(user)


@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    return [UserOut.model_validate(u) for u in accounts.list_users(db)]


@router.post("/login", response_model=UserOut, responses={400: {"description": "Invalid email or password"}})
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = accounts.login(db, payload.email, payload.password)
    return UserOut.model_validate(user)


@router.put("/{user_id}", response_model=UserOut, responses={**_errors, **_not_found})
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    user = accounts.update(db, user_id, email=payload.email, password=payload.password)
    return UserOut.model_validate(user)


@router.delete("/{user_id}", response_model=DeleteResponse, responses=_not_found)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    removed = accounts.delete(db, user_id)
    return {"message": f"User deleted along with {removed} conversation(s)"}
