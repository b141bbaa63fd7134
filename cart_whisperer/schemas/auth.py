from __future__ import annotations

from pydantic import BaseModel, Field


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, description="At least 6 characters")


class UserOut(BaseModel):
    id: str
    email: str | None = None


class SessionOut(BaseModel):
    access_token: str
    expires_at: int | None = None


class SignInResponse(BaseModel):
    user: UserOut
    session: SessionOut


class SignUpResponse(BaseModel):
    user: UserOut
    session: SessionOut | None = None
    confirmation_required: bool = False


class SessionStatusResponse(BaseModel):
    user: UserOut | None = None
