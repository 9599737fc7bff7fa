"""
TravelStory Backend — Travel Story Route Handlers
==================================================

What:  Story CRUD, favorite toggle, search and date filter endpoints.
How:   Every route depends on `get_current_user_id`; the resolved id is
       passed to StoryService, which scopes all queries by owner.

Route Inventory:
    POST   /add-travel-story
    GET    /get-all-stories
    PUT    /edit-story/{story_id}
    DELETE /delete-story/{story_id}
    PUT    /update-is-favorite/{story_id}
    GET    /search?query=
    GET    /travel-stories/filter?startDate=&endDate=
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.database import get_db_session
from travelstory.dependencies import get_current_user_id, get_story_service
from travelstory.models.travel_story import TravelStory
from travelstory.schemas.common import ErrorResponse, MessageResponse
from travelstory.schemas.story import (
    EPOCH_MS_MAX,
    EPOCH_MS_MIN,
    FavoriteUpdateRequest,
    StoryCreateRequest,
    StoryListResponse,
    StoryResponse,
    StoryUpdateRequest,
    TravelStoryResponse,
)
from travelstory.services.story_service import StoryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Travel Stories"])

_AUTH_ERROR = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Story not found or not owned", "model": ErrorResponse}}


def _story_list(stories: List[TravelStory]) -> StoryListResponse:
    return StoryListResponse(stories=[TravelStoryResponse.model_validate(s) for s in stories])


@router.post(
    "/add-travel-story",
    status_code=201,
    response_model=StoryResponse,
    responses={400: {"description": "Missing fields", "model": ErrorResponse}, **_AUTH_ERROR},
    summary="Add a travel story",
)
async def add_travel_story(
    payload: StoryCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryResponse:
    story = await story_service.add_story(
        db,
        user_id,
        title=payload.title,
        story=payload.story,
        visible_location=payload.visible_location,
        image_url=payload.image_url,
        visited_date_ms=payload.visited_date,
    )
    return StoryResponse(
        story=TravelStoryResponse.model_validate(story),
        message="Travel story added successfully",
    )


@router.get(
    "/get-all-stories",
    response_model=StoryListResponse,
    responses=_AUTH_ERROR,
    summary="List the caller's stories, favorites first",
)
async def get_all_stories(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return _story_list(await story_service.list_stories(db, user_id))


@router.put(
    "/edit-story/{story_id}",
    response_model=StoryResponse,
    responses={400: {"description": "Missing fields", "model": ErrorResponse}, **_AUTH_ERROR, **_NOT_FOUND},
    summary="Overwrite a story's fields",
)
async def edit_story(
    story_id: str,
    payload: StoryUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryResponse:
    story = await story_service.edit_story(
        db,
        user_id,
        story_id,
        title=payload.title,
        story=payload.story,
        visible_location=payload.visible_location,
        image_url=payload.image_url,
        visited_date_ms=payload.visited_date,
    )
    return StoryResponse(
        story=TravelStoryResponse.model_validate(story),
        message="Update successful",
    )


@router.delete(
    "/delete-story/{story_id}",
    response_model=MessageResponse,
    responses={**_AUTH_ERROR, **_NOT_FOUND},
    summary="Delete a story and its uploaded image",
)
async def delete_story(
    story_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> MessageResponse:
    await story_service.delete_story(db, user_id, story_id)
    return MessageResponse(message="Travel story deleted successfully")


@router.put(
    "/update-is-favorite/{story_id}",
    response_model=StoryResponse,
    responses={**_AUTH_ERROR, **_NOT_FOUND},
    summary="Set or clear the favorite flag",
)
async def update_is_favorite(
    story_id: str,
    payload: FavoriteUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryResponse:
    story = await story_service.set_favorite(db, user_id, story_id, payload.is_favorite)
    return StoryResponse(
        story=TravelStoryResponse.model_validate(story),
        message="Update successful",
    )


@router.get(
    "/search",
    response_model=StoryListResponse,
    responses={404: {"description": "query missing", "model": ErrorResponse}, **_AUTH_ERROR},
    summary="Search title, story text and locations",
)
async def search_stories(
    query: Optional[str] = Query(default=None, description="Case-insensitive substring"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return _story_list(await story_service.search(db, user_id, query))


@router.get(
    "/travel-stories/filter",
    response_model=StoryListResponse,
    responses={400: {"description": "Bounds missing, reversed or out of range", "model": ErrorResponse}, **_AUTH_ERROR},
    summary="Stories visited within a date range",
)
async def filter_stories(
    start_date: Optional[int] = Query(
        default=None, alias="startDate", ge=EPOCH_MS_MIN, le=EPOCH_MS_MAX, description="Epoch ms, inclusive"
    ),
    end_date: Optional[int] = Query(
        default=None, alias="endDate", ge=EPOCH_MS_MIN, le=EPOCH_MS_MAX, description="Epoch ms, inclusive"
    ),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
    story_service: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return _story_list(await story_service.filter_by_date(db, user_id, start_date, end_date))
