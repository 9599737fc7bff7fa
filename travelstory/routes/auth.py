"""
TravelStory Backend — Account Route Handlers
=============================================

What:  POST /create-account, POST /login, GET /get-user.
How:   Validate the body against the request schema, delegate to
       AuthService, and shape the response. Failures are raised as
       application exceptions and formatted by the global handlers.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.database import get_db_session
from travelstory.dependencies import get_auth_service, get_current_user_id
from travelstory.schemas.common import ErrorResponse
from travelstory.schemas.user import (
    AuthResponse,
    CreateAccountRequest,
    CurrentUserResponse,
    LoginRequest,
    UserDetail,
    UserSummary,
)
from travelstory.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])


@router.post(
    "/create-account",
    status_code=201,
    response_model=AuthResponse,
    responses={400: {"description": "Missing fields or email taken", "model": ErrorResponse}},
    summary="Register a new account",
)
async def create_account(
    payload: CreateAccountRequest,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user, token = await auth_service.register(
        db,
        full_name=payload.full_name,
        email=payload.email,
        password=payload.password,
    )
    return AuthResponse(
        user=UserSummary.model_validate(user),
        access_token=token,
        message="Account created successfully",
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"description": "Missing fields, unknown user or bad password", "model": ErrorResponse}},
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user, token = await auth_service.login(db, email=payload.email, password=payload.password)
    return AuthResponse(
        user=UserSummary.model_validate(user),
        access_token=token,
        message="Login successful",
    )


@router.get(
    "/get-user",
    response_model=CurrentUserResponse,
    responses={401: {"description": "Missing/invalid token or unknown user", "model": ErrorResponse}},
    summary="Return the authenticated account",
)
async def get_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUserResponse:
    user = await auth_service.get_current_user(db, user_id)
    return CurrentUserResponse(user=UserDetail.model_validate(user))
