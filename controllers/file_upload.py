"""
    Controller to handle interactions with Cloudinary's API for image uploads
"""
from datetime import datetime

import cloudinary.utils
import filetype
import logfire

from fastapi import status, UploadFile
from fastapi.responses import JSONResponse

from httpx import AsyncClient, HTTPError, ConnectTimeout, NetworkError, Limits
from pydantic import ValidationError

from typing import Set, Tuple

from config import CloudinarySettings
from models.helpers import ImageKind
from schema.file_upload import CloudinaryImageUploadResponse


ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png"}
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
UPLOAD_FOLDER = "videotube"


def file_greater_than_max_size(file: UploadFile) -> bool:
    """
    Check if the uploaded file exceeds the maximum allowed size.

    Args:
        file (UploadFile): The uploaded file to check.

    Returns:
        bool: True if the file is larger than the maximum size, False otherwise.
    """
    return file.size is not None and file.size > MAX_IMAGE_SIZE_BYTES


async def validate_image(
    file: UploadFile, allowed_types: Set[str] = ALLOWED_IMAGE_TYPES
) -> JSONResponse | None:
    """
    Validate that an uploaded image is small enough and of an allowed MIME type.

    Args:
        file: The uploaded file
        allowed_types: Set of allowed MIME types (e.g., {'image/jpeg', 'image/png'})

    Returns:
        JSONResponse with 400/413 status if validation fails, None if the file is valid

    Example:
        >>> if error := await validate_image(avatar):
        >>>     return error
    """
    if file_greater_than_max_size(file):
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"detail": f"File {file.filename} is larger than 10 MB."},
        )

    content = await file.read()
    kind = filetype.guess(content)

    # Reset file pointer for the upload
    await file.seek(0)

    if not kind or kind.mime not in allowed_types:
        allowed_extensions = ", ".join(
            sorted(set(mime.split("/")[1].upper() for mime in allowed_types))
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": f"Invalid image file type: {file.filename}. "
                f"Allowed types are {allowed_extensions}."
            },
        )

    return None


async def upload_file_to_cloudinary(
    image: UploadFile, kind: ImageKind, settings: CloudinarySettings
) -> Tuple[int, CloudinaryImageUploadResponse | None]:
    """Uploads an image to Cloudinary with a signed request.

    Args:
        image (UploadFile): The image file to be uploaded.
        kind (ImageKind): Which profile image this is, used as the Cloudinary folder.
        settings (CloudinarySettings): Cloudinary credentials.

    Returns:
        Tuple[int, CloudinaryImageUploadResponse | None]: The HTTP status code and the parsed upload
            response if successful, or None if the upload failed.
    """
    if not (settings.cloud_name and settings.api_key and settings.api_secret):
        logfire.error("Cloudinary credentials are not configured")
        return status.HTTP_500_INTERNAL_SERVER_ERROR, None

    timestamp = str(int(datetime.now().timestamp()))
    folder = f"{UPLOAD_FOLDER}/{kind.value}"

    url = f"https://api.cloudinary.com/v1_1/{settings.cloud_name}/image/upload"

    payload = {
        "timestamp": timestamp,
        "folder": folder,
        "api_key": settings.api_key,
        "signature": cloudinary.utils.api_sign_request(
            {"timestamp": timestamp, "folder": folder},
            settings.api_secret,
        ),
    }

    files = {"file": (image.filename, image.file, image.content_type)}

    with logfire.span(f"Uploading {kind.value} to Cloudinary"):
        try:
            connection_limits = Limits(max_keepalive_connections=20, max_connections=20)

            async with AsyncClient(timeout=30, limits=connection_limits) as client:
                response = await client.post(url, data=payload, files=files)
        except NetworkError as e:
            logfire.error(f"Network error occurred while uploading image to Cloudinary: {e}")
            return status.HTTP_503_SERVICE_UNAVAILABLE, None
        except ConnectTimeout as e:
            logfire.error(f"Connection timed out while uploading image to Cloudinary: {e}")
            return status.HTTP_504_GATEWAY_TIMEOUT, None
        except HTTPError as e:
            logfire.error(f"HTTP error occurred while uploading image to Cloudinary: {e}")
            return status.HTTP_500_INTERNAL_SERVER_ERROR, None

        if response.status_code != status.HTTP_200_OK:
            logfire.error(f"Failed to upload image to Cloudinary: {response.text}")
            return response.status_code, None

        try:
            upload = CloudinaryImageUploadResponse(**response.json())
        except (ValueError, ValidationError) as e:
            logfire.error(f"Unexpected upload response from Cloudinary: {e}")
            return status.HTTP_502_BAD_GATEWAY, None

        logfire.info(f"Image uploaded successfully to Cloudinary: {upload.public_id}")
        return response.status_code, upload
