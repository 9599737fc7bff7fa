"""
TravelStory Backend — Story Service
====================================

What:  Create, read, update, delete, search and date-filter travel stories.
How:   Each method receives the request's AsyncSession and the authenticated
       user id. Every query is scoped by `user_id`; a story id that belongs
       to another user behaves exactly like one that does not exist.
Who:   Called by the story route handlers.

Ordering:
    All listings (list, search, filter) use the same rule: favorites first,
    then newest `created_on` first.

Error Handling Strategy:
    Business-rule failures raise ValidationError / NotFoundError directly.
    Unexpected SQLAlchemy errors are logged and wrapped in DatabaseError so
    the client only sees a generic 500.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy import String, cast, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.exceptions import (
    DatabaseError,
    NotFoundError,
    TravelStoryError,
    ValidationError,
)
from travelstory.models.travel_story import TravelStory
from travelstory.services.file_service import FileService

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_LISTING_ORDER = (TravelStory.is_favorite.desc(), TravelStory.created_on.desc())


def from_epoch_millis(value: int, field: str = "visitedDate") -> datetime:
    """
    Epoch milliseconds → aware UTC datetime, without float rounding.

    Raises:
        ValidationError: value falls outside the years 1-9999
    """
    try:
        return _EPOCH + timedelta(milliseconds=int(value))
    except (OverflowError, ValueError):
        raise ValidationError(
            message=f"{field} is out of range",
            field=field,
            problems=[{"field": field, "message": "is out of range"}],
        )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_story_id(story_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(story_id))
    except (TypeError, ValueError):
        return None


def _matches(story: TravelStory, needle: str) -> bool:
    """Case-insensitive containment in the title, the text, or a single location."""
    if needle in (story.title or "").lower() or needle in (story.story or "").lower():
        return True
    return any(needle in str(location).lower() for location in story.visible_location or [])


class StoryService:
    """
    Business logic for travel stories.

    Responsibilities:
        - add_story() / edit_story(): validate and persist story fields
        - list_stories() / search() / filter_by_date(): owner-scoped listings
        - set_favorite(): single-field update
        - delete_story(): remove the row, then best-effort remove its image
    """

    def __init__(self, file_service: FileService, placeholder_image_url: str):
        self.files = file_service
        self.placeholder_image_url = placeholder_image_url

    # ── Validation ────────────────────────────────────────────────────────

    @staticmethod
    def _check_required(
        title: Optional[str],
        story: Optional[str],
        visible_location: Optional[Sequence[str]],
        visited_date_ms: Optional[int],
        image_url: Optional[str] = "",
        image_required: bool = False,
    ) -> None:
        missing: List[str] = []
        if not title or not title.strip():
            missing.append("title")
        if not story or not story.strip():
            missing.append("story")
        if visible_location is None:
            missing.append("visibleLocation")
        if image_required and (not image_url or not image_url.strip()):
            missing.append("imageUrl")
        if visited_date_ms is None:
            missing.append("visitedDate")
        if missing:
            raise ValidationError.missing_fields(missing)

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _get_owned(
        self, db: AsyncSession, user_id: uuid.UUID, story_id: str
    ) -> TravelStory:
        """
        Fetch a story by id AND owner.

        Raises:
            NotFoundError: unknown id, malformed id, or someone else's story
        """
        parsed_id = _parse_story_id(story_id)
        if parsed_id is None:
            raise NotFoundError(resource="travel story", resource_id=str(story_id))

        result = await db.execute(
            select(TravelStory).where(
                TravelStory.id == parsed_id,
                TravelStory.user_id == user_id,
            )
        )
        story = result.scalar_one_or_none()
        if story is None:
            raise NotFoundError(resource="travel story", resource_id=str(story_id))
        return story

    async def _run_listing(self, db: AsyncSession, query, operation: str) -> List[TravelStory]:
        try:
            result = await db.execute(query.order_by(*_LISTING_ORDER))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error in %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve travel stories. Please try again.",
                context={"error_type": type(e).__name__},
            )

    # ── Operations ────────────────────────────────────────────────────────

    async def add_story(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        title: Optional[str],
        story: Optional[str],
        visible_location: Optional[Sequence[str]],
        image_url: Optional[str],
        visited_date_ms: Optional[int],
    ) -> TravelStory:
        """
        Persist a new story for `user_id`.

        created_on is set by the server and is_favorite starts false.

        Raises:
            ValidationError: any of title, story, visibleLocation, imageUrl,
                             visitedDate missing (all listed at once), or
                             visitedDate out of range
        """
        self._check_required(
            title, story, visible_location, visited_date_ms,
            image_url=image_url, image_required=True,
        )

        travel_story = TravelStory(
            title=title,
            story=story,
            visible_location=list(visible_location),
            is_favorite=False,
            user_id=user_id,
            created_on=datetime.now(timezone.utc),
            image_url=image_url,
            visited_date=from_epoch_millis(visited_date_ms),
        )
        db.add(travel_story)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error adding story: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the travel story. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Story %s added for user %s", travel_story.id, user_id)
        return travel_story

    async def list_stories(self, db: AsyncSession, user_id: uuid.UUID) -> List[TravelStory]:
        """All of the user's stories, favorites first then newest first."""
        query = select(TravelStory).where(TravelStory.user_id == user_id)
        return await self._run_listing(db, query, "list_stories")

    async def edit_story(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        story_id: str,
        title: Optional[str],
        story: Optional[str],
        visible_location: Optional[Sequence[str]],
        image_url: Optional[str],
        visited_date_ms: Optional[int],
    ) -> TravelStory:
        """
        Overwrite every mutable field of an owned story.

        An empty image_url is replaced with the placeholder image rather
        than rejected.

        Raises:
            ValidationError: title, story, visibleLocation or visitedDate missing,
                             or visitedDate out of range
            NotFoundError:   story not found or not owned by user_id
        """
        self._check_required(title, story, visible_location, visited_date_ms)
        visited_date = from_epoch_millis(visited_date_ms)

        travel_story = await self._get_owned(db, user_id, story_id)

        travel_story.title = title
        travel_story.story = story
        travel_story.visible_location = list(visible_location)
        travel_story.image_url = (
            image_url.strip() if image_url and image_url.strip() else self.placeholder_image_url
        )
        travel_story.visited_date = visited_date

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error editing story %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the travel story. Please try again.",
                context={"story_id": str(story_id)},
            )

        logger.info("Story %s updated", travel_story.id)
        return travel_story

    async def delete_story(self, db: AsyncSession, user_id: uuid.UUID, story_id: str) -> None:
        """
        Delete an owned story, then try to remove its image file.

        The row deletion is committed before the file is touched. A failure
        to remove the file (already gone, placeholder URL, I/O error) is
        logged and does not fail the call.

        Raises:
            NotFoundError: story not found or not owned by user_id
            DatabaseError: the delete could not be committed
        """
        travel_story = await self._get_owned(db, user_id, story_id)
        image_url = travel_story.image_url

        try:
            await db.delete(travel_story)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting story %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the travel story. Please try again.",
                context={"story_id": str(story_id)},
            )

        logger.info("Story %s deleted", story_id)

        try:
            await self.files.delete_image(image_url)
        except TravelStoryError as e:
            logger.warning(
                "Story %s deleted but its image was not removed: %s", story_id, e.message
            )

    async def set_favorite(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        story_id: str,
        is_favorite: bool,
    ) -> TravelStory:
        """
        Set the favorite flag of an owned story.

        Raises:
            NotFoundError: story not found or not owned by user_id
            DatabaseError: the update could not be flushed
        """
        travel_story = await self._get_owned(db, user_id, story_id)
        travel_story.is_favorite = bool(is_favorite)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating favorite %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the travel story. Please try again.",
                context={"story_id": str(story_id)},
            )
        return travel_story

    async def search(
        self, db: AsyncSession, user_id: uuid.UUID, query: Optional[str]
    ) -> List[TravelStory]:
        """
        Case-insensitive substring search over title, story and locations.

        The database narrows the candidates with ILIKE, matching locations
        against the stored JSON text. Each candidate is then checked entry
        by entry, so JSON punctuation and text spanning two locations never
        count as a match.

        Raises:
            ValidationError: query empty (reported as 404 by the search route)
        """
        if not query or not query.strip():
            raise ValidationError(message="query is required", field="query", status_code=404)

        term = query.strip()
        pattern = f"%{_escape_like(term)}%"
        # Quotes and backslashes inside a location are stored JSON-escaped
        json_pattern = f"%{_escape_like(json.dumps(term, ensure_ascii=False)[1:-1])}%"

        statement = select(TravelStory).where(
            TravelStory.user_id == user_id,
            or_(
                TravelStory.title.ilike(pattern, escape="\\"),
                TravelStory.story.ilike(pattern, escape="\\"),
                cast(TravelStory.visible_location, String).ilike(json_pattern, escape="\\"),
            ),
        )
        candidates = await self._run_listing(db, statement, "search")

        needle = term.lower()
        return [story for story in candidates if _matches(story, needle)]

    async def filter_by_date(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        start_ms: Optional[int],
        end_ms: Optional[int],
    ) -> List[TravelStory]:
        """
        Stories whose visited_date lies in the closed range [start, end].

        Raises:
            ValidationError: a bound is missing or out of range, or start is after end
        """
        missing = [
            name for name, value in (("startDate", start_ms), ("endDate", end_ms))
            if value is None
        ]
        if missing:
            raise ValidationError.missing_fields(missing)
        if start_ms > end_ms:
            raise ValidationError(
                message="startDate must not be after endDate",
                field="startDate",
            )

        start = from_epoch_millis(start_ms, field="startDate")
        end = from_epoch_millis(end_ms, field="endDate")

        statement = select(TravelStory).where(
            TravelStory.user_id == user_id,
            TravelStory.visited_date >= start,
            TravelStory.visited_date <= end,
        )
        return await self._run_listing(db, statement, "filter_by_date")
