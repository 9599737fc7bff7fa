"""
TravelStory Backend — File Service Unit Tests
==============================================

What:  Tests for FileService validation, storage and deletion.
How:   Uses a temporary upload directory per test (no HTTP involved).
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from travelstory.exceptions import FileStorageError, NotFoundError, ValidationError


class TestMimeValidation:
    """Only JPEG and PNG uploads are accepted."""

    def test_png_accepted(self, file_service):
        assert file_service._validate_mime_type("image/png") == ".png"

    def test_jpeg_accepted(self, file_service):
        assert file_service._validate_mime_type("image/jpeg") == ".jpg"

    def test_mime_check_ignores_case_and_parameters(self, file_service):
        assert file_service._validate_mime_type("IMAGE/PNG; charset=binary") == ".png"

    def test_gif_rejected(self, file_service):
        with pytest.raises(ValidationError, match="Only images are allowed"):
            file_service._validate_mime_type("image/gif")

    def test_missing_mime_rejected(self, file_service):
        with pytest.raises(ValidationError):
            file_service._validate_mime_type(None)


class TestStoreImage:
    """store_image writes the bytes and returns a public URL."""

    @pytest.mark.asyncio
    async def test_png_upload_returns_png_url(self, file_service, sample_png_bytes):
        url = await file_service.store_image(sample_png_bytes, "image/png", "holiday.png")

        assert url.startswith("http://testserver/uploads/")
        assert url.endswith(".png")
        stored = file_service.upload_root / file_service.filename_from_url(url)
        assert stored.read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_original_extension_is_kept_lowercased(self, file_service, sample_png_bytes):
        url = await file_service.store_image(sample_png_bytes, "image/jpeg", "Beach.JPEG")
        assert url.endswith(".jpeg")

    @pytest.mark.asyncio
    async def test_extension_falls_back_to_mime_type(self, file_service, sample_png_bytes):
        url = await file_service.store_image(sample_png_bytes, "image/png", "noextension")
        assert url.endswith(".png")

    @pytest.mark.asyncio
    async def test_two_uploads_get_distinct_names(self, file_service, sample_png_bytes):
        first = await file_service.store_image(sample_png_bytes, "image/png", "a.png")
        second = await file_service.store_image(sample_png_bytes, "image/png", "a.png")
        assert first != second

    @pytest.mark.asyncio
    async def test_gif_upload_rejected(self, file_service):
        with pytest.raises(ValidationError):
            await file_service.store_image(b"GIF89a", "image/gif", "anim.gif")
        assert list(file_service.upload_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_empty_upload_rejected(self, file_service):
        with pytest.raises(ValidationError, match="No image uploaded"):
            await file_service.store_image(b"", "image/png", "empty.png")

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected(self, file_service):
        file_service.max_file_size = 10
        with pytest.raises(ValidationError, match="exceeds maximum"):
            await file_service.store_image(b"x" * 11, "image/png", "big.png")

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(self, file_service, sample_png_bytes):
        with patch("aiofiles.open", side_effect=PermissionError("read-only")):
            with pytest.raises(FileStorageError):
                await file_service.store_image(sample_png_bytes, "image/png", "a.png")


class TestDeleteImage:
    """delete_image removes files by URL and reports missing ones."""

    @pytest.mark.asyncio
    async def test_delete_twice(self, file_service, sample_png_bytes):
        url = await file_service.store_image(sample_png_bytes, "image/png", "a.png")

        await file_service.delete_image(url)
        assert list(file_service.upload_root.iterdir()) == []

        with pytest.raises(NotFoundError):
            await file_service.delete_image(url)

    @pytest.mark.asyncio
    async def test_missing_url_rejected(self, file_service):
        with pytest.raises(ValidationError):
            await file_service.delete_image("")
        with pytest.raises(ValidationError):
            await file_service.delete_image(None)

    @pytest.mark.asyncio
    async def test_path_components_are_ignored(self, file_service, tmp_path):
        outside = tmp_path / "secret.txt"
        outside.write_text("keep me")

        with pytest.raises(NotFoundError):
            await file_service.delete_image("http://testserver/uploads/../secret.txt")
        assert outside.exists()

    def test_filename_from_url(self, file_service):
        assert file_service.filename_from_url(
            "http://localhost:8000/uploads/1700000000000-abcd1234.png"
        ) == "1700000000000-abcd1234.png"
        assert file_service.filename_from_url("/uploads/a%20b.jpg") == "a b.jpg"
        assert Path(file_service.filename_from_url("../../etc/passwd")).name == "passwd"
