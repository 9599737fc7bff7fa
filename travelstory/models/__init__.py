"""ORM models; importing this package registers every table with Base.metadata."""

from travelstory.models.travel_story import TravelStory
from travelstory.models.user import User

__all__ = ["TravelStory", "User"]
