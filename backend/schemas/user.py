"""User account schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

MIN_PASSWORD_LENGTH = 6


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=MIN_PASSWORD_LENGTH)


class LoginRequest(BaseModel):
    # Not EmailStr: a malformed email must fail like any other bad credential.
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    message: str
