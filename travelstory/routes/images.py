"""
TravelStory Backend — Image Route Handlers
===========================================

What:  POST /image-upload (multipart field "image") and DELETE /delete-image.
How:   Read the uploaded part, delegate to FileService, return the URL.
       Stored files are served by the `/uploads` static mount in main.py.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from travelstory.dependencies import get_current_user_id, get_file_service
from travelstory.exceptions import ValidationError
from travelstory.schemas.common import ErrorResponse, MessageResponse
from travelstory.schemas.story import ImageUploadResponse
from travelstory.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


@router.post(
    "/image-upload",
    status_code=201,
    response_model=ImageUploadResponse,
    responses={
        400: {"description": "No file or unsupported type", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Could not write the file", "model": ErrorResponse},
    },
    summary="Upload a JPEG or PNG story image",
)
async def upload_image(
    image: Optional[UploadFile] = File(default=None, description="JPEG or PNG image"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    file_service: FileService = Depends(get_file_service),
) -> ImageUploadResponse:
    if image is None:
        raise ValidationError(message="No image uploaded", field="image")

    try:
        content = await image.read()
        logger.info(
            "Received upload from %s: filename=%s, size=%d bytes",
            user_id,
            image.filename or "unknown",
            len(content),
        )
        url = await file_service.store_image(content, image.content_type, image.filename)
    finally:
        await image.close()

    return ImageUploadResponse(image_url=url)


@router.delete(
    "/delete-image",
    response_model=MessageResponse,
    responses={
        400: {"description": "imageUrl missing", "model": ErrorResponse},
        404: {"description": "Image not found", "model": ErrorResponse},
    },
    summary="Delete an uploaded image by its URL",
)
async def delete_image(
    image_url: Optional[str] = Query(default=None, alias="imageUrl"),
    file_service: FileService = Depends(get_file_service),
) -> MessageResponse:
    await file_service.delete_image(image_url)
    return MessageResponse(message="Image deleted successfully")
