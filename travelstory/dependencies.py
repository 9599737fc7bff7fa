"""
FastAPI dependencies for services and authentication.

`get_current_user_id` is the auth check applied to every protected route:
it validates the bearer token and hands the resolved user id to the handler.
"""

import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from travelstory.context import ServiceContext
from travelstory.services.auth_service import AuthService
from travelstory.services.file_service import FileService
from travelstory.services.story_service import StoryService

# auto_error=False: a missing header is reported through AuthError so the
# response has the same JSON shape as every other failure.
bearer_scheme = HTTPBearer(auto_error=False)


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


def get_auth_service(context: ServiceContext = Depends(get_context)) -> AuthService:
    return context.auth_service


def get_file_service(context: ServiceContext = Depends(get_context)) -> FileService:
    return context.file_service


def get_story_service(context: ServiceContext = Depends(get_context)) -> StoryService:
    return context.story_service


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> uuid.UUID:
    """
    Resolve the bearer token to a user id.

    Raises:
        AuthError (401): header missing, token invalid or expired
    """
    token = credentials.credentials if credentials else None
    return auth_service.verify_token(token)
