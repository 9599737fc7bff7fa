"""Account schemas: registration, login and the user views returned to clients."""

import uuid
from datetime import datetime

from pydantic import Field

from travelstory.schemas.common import CamelModel


class CreateAccountRequest(CamelModel):
    full_name: str = Field(min_length=1, description="Display name")
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserSummary(CamelModel):
    """Name and email only; returned alongside a freshly issued token."""
    full_name: str
    email: str


class UserDetail(CamelModel):
    id: uuid.UUID
    full_name: str
    email: str
    created_on: datetime


class AuthResponse(CamelModel):
    error: bool = False
    user: UserSummary
    access_token: str
    message: str


class CurrentUserResponse(CamelModel):
    user: UserDetail
    message: str = ""
