from __future__ import annotations
from typing import BinaryIO

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from logging_config import get_logger
from settings import Settings

logger = get_logger("images")

UPLOAD_FOLDER = "products"


class ImageHostNotConfigured(Exception):
    pass


class ImageUploadError(Exception):
    pass


def configure(env: Settings) -> bool:
    if not (env.CLOUDINARY_CLOUD_NAME and env.CLOUDINARY_API_KEY and env.CLOUDINARY_API_SECRET):
        logger.info("cloudinary_not_configured")
        return False
    cloudinary.config(
        cloud_name=env.CLOUDINARY_CLOUD_NAME,
        api_key=env.CLOUDINARY_API_KEY,
        api_secret=env.CLOUDINARY_API_SECRET,
        secure=True,
    )
    return True


async def upload_image(file: BinaryIO) -> str:
    """Upload to Cloudinary and return the secure URL."""
    if not cloudinary.config().api_key:
        raise ImageHostNotConfigured("Image hosting not configured")
    try:
        result = await run_in_threadpool(cloudinary.uploader.upload, file, folder=UPLOAD_FOLDER)
    except Exception as e:
        logger.exception("image_upload_failed")
        raise ImageUploadError(str(e)) from e
    return result["secure_url"]
