"""
TravelStory Backend — Service Context
======================================

What:  The bundle of settings, store handle and services owned by one app.
How:   `create_app()` builds a ServiceContext and stores it on
       `app.state.context`; the lifespan calls startup()/shutdown().
       Dependencies read services from the context of the app serving the
       request, so two app instances never share an engine or a directory.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from travelstory.config import Settings
from travelstory.database import Database
from travelstory.services.auth_service import AuthService
from travelstory.services.file_service import FileService
from travelstory.services.story_service import StoryService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    database: Database = field(init=False)
    auth_service: AuthService = field(init=False)
    file_service: FileService = field(init=False)
    story_service: StoryService = field(init=False)

    def __post_init__(self) -> None:
        self.database = Database(self.settings)
        self.auth_service = AuthService(self.settings)
        self.file_service = FileService(
            upload_root=self.settings.upload_dir,
            public_base_url=self.settings.public_base_url,
            max_file_size=self.settings.max_file_size,
        )
        self.story_service = StoryService(
            file_service=self.file_service,
            placeholder_image_url=self.settings.effective_placeholder_image_url,
        )

    async def startup(self) -> None:
        """Prepares directories and, when configured, the schema."""
        self.file_service.ensure_storage()
        Path(self.settings.assets_dir).mkdir(parents=True, exist_ok=True)
        if self.settings.auto_create_schema:
            await self.database.create_all()
            logger.info("Database schema ensured")

    async def shutdown(self) -> None:
        await self.database.dispose()
