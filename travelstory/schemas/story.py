"""
Travel story schemas.

`visitedDate` travels as epoch milliseconds on input and as an ISO 8601
timestamp on output, matching how the stored value is a timestamp.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from travelstory.schemas.common import CamelModel

# 0001-01-01T00:00:00Z .. 9999-12-31T23:59:59.999Z, the range a datetime can hold
EPOCH_MS_MIN = -62_135_596_800_000
EPOCH_MS_MAX = 253_402_300_799_999


class StoryCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    story: str = Field(min_length=1)
    visible_location: List[str] = Field(description="Ordered place names; may be empty")
    image_url: str = Field(min_length=1)
    visited_date: int = Field(
        ge=EPOCH_MS_MIN, le=EPOCH_MS_MAX, description="Visit date as epoch milliseconds"
    )


class StoryUpdateRequest(CamelModel):
    title: str = Field(min_length=1)
    story: str = Field(min_length=1)
    visible_location: List[str]
    image_url: Optional[str] = Field(
        default=None,
        description="Empty or omitted means the placeholder image",
    )
    visited_date: int = Field(ge=EPOCH_MS_MIN, le=EPOCH_MS_MAX)


class FavoriteUpdateRequest(CamelModel):
    is_favorite: bool


class TravelStoryResponse(CamelModel):
    id: uuid.UUID
    title: str
    story: str
    visible_location: List[str]
    is_favorite: bool
    user_id: uuid.UUID
    created_on: datetime
    image_url: str
    visited_date: datetime


class StoryResponse(CamelModel):
    story: TravelStoryResponse
    message: str


class StoryListResponse(CamelModel):
    stories: List[TravelStoryResponse]


class ImageUploadResponse(CamelModel):
    image_url: str
    message: str = "Image uploaded successfully"
