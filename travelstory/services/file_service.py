"""
TravelStory Backend — Image Upload Service
===========================================

What:  Validates, stores and deletes uploaded story images.
How:   Checks the declared MIME type and size, writes the bytes under the
       upload directory with a generated name, and returns the public URL
       under which the `/uploads` static mount serves the file.
Who:   Called by the image routes and, for cleanup, by StoryService.

Filename scheme:
    <epoch-ms>-<8 hex chars><ext>     e.g. 1700000000123-9f86d081.png

    The millisecond prefix keeps names time-ordered; the random suffix keeps
    two uploads in the same millisecond apart. No client-supplied text ends
    up in the path except the lower-cased extension.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import aiofiles
import aiofiles.os

from travelstory.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Declared MIME type → extension used when the original name has none
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


class FileService:
    """
    Manages the upload directory.

    Lifecycle of an uploaded image:
        1. Route reads the multipart "image" part → store_image()
        2. MIME type and size checks
        3. Bytes written to <upload_root>/<generated name>
        4. Absolute URL returned to the client, later saved on a story
        5. delete_image() removes it, either directly or when its story is deleted
    """

    def __init__(self, upload_root: str, public_base_url: str, max_file_size: int):
        self.upload_root = Path(upload_root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.max_file_size = max_file_size

    def ensure_storage(self) -> None:
        """Creates the upload directory if missing (idempotent)."""
        self.upload_root.mkdir(parents=True, exist_ok=True)
        logger.info("Upload directory: %s", self.upload_root)

    def _validate_mime_type(self, mime_type: Optional[str]) -> str:
        """
        Returns the extension registered for an allowed MIME type.

        Raises:  ValidationError for anything except image/jpeg and image/png.
        """
        normalized = (mime_type or "").split(";")[0].strip().lower()
        if normalized not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Only images are allowed (JPEG or PNG)",
                field="image",
                context={"content_type": normalized, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return ALLOWED_MIME_TYPES[normalized]

    def _validate_size(self, content: bytes) -> None:
        max_mb = self.max_file_size / (1024 * 1024)
        if len(content) > self.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def _generate_filename(self, original_name: Optional[str], default_ext: str) -> str:
        ext = Path(original_name or "").suffix.lower() or default_ext
        millis = int(time.time() * 1000)
        return f"{millis}-{uuid.uuid4().hex[:8]}{ext}"

    def url_for(self, filename: str) -> str:
        return f"{self.public_base_url}/uploads/{filename}"

    async def store_image(
        self,
        content: Optional[bytes],
        mime_type: Optional[str],
        original_name: Optional[str],
    ) -> str:
        """
        Validate and persist an uploaded image.

        Args:
            content:        Raw file bytes (None or empty when no file was sent)
            mime_type:      Content type declared by the multipart part
            original_name:  Client filename; only its extension is kept

        Returns:
            Absolute URL of the stored file.

        Raises:
            ValidationError:   No file, unsupported type, or too large
            FileStorageError:  Directory creation or write failed
        """
        if not content:
            raise ValidationError(message="No image uploaded", field="image")

        default_ext = self._validate_mime_type(mime_type)
        self._validate_size(content)

        filename = self._generate_filename(original_name, default_ext)
        path = self.upload_root / filename

        try:
            self.upload_root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", filename, len(content))
        return self.url_for(filename)

    def filename_from_url(self, url: str) -> str:
        """
        Last path segment of an image URL.

        Only the bare name is used, so a crafted URL cannot point outside
        the upload directory.
        """
        path = unquote(urlparse(url).path)
        return Path(path).name

    async def delete_image(self, url: Optional[str]) -> None:
        """
        Remove a previously uploaded image.

        Raises:
            ValidationError:   No URL given, or it names no file
            NotFoundError:     The file is not in the upload directory
            FileStorageError:  The file exists but could not be removed
        """
        if not url or not url.strip():
            raise ValidationError(message="imageUrl parameter is required", field="imageUrl")

        filename = self.filename_from_url(url.strip())
        if not filename or filename in {".", ".."}:
            raise ValidationError(message="imageUrl does not name a file", field="imageUrl")

        path = self.upload_root / filename
        if not path.is_file():
            raise NotFoundError(resource="image", message="Image not found")

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            # Removed concurrently between the check and the unlink
            raise NotFoundError(resource="image", message="Image not found")
        except OSError as e:
            logger.error("Failed to delete file %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to delete image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image deleted: %s", filename)
