"""
app/services/image_service.py

Purpose: Product image hosting (Cloudinary)

- Uploads into the configured folder through the Cloudinary SDK
- Size and format limits checked before upload
- Credential report and API ping for diagnostics

The SDK is blocking, so calls run in the threadpool.
"""

import io
from typing import Any, Dict, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import ExternalServiceError, ValidationError
from app.core.logging import get_logger
from utils.constants import ALLOWED_IMAGE_FORMATS, MAX_IMAGE_BYTES

logger = get_logger(__name__)

# Fit within 800x800, automatic quality and format
UPLOAD_TRANSFORMATION = [
    {"width": 800, "height": 800, "crop": "limit"},
    {"quality": "auto"},
    {"fetch_format": "auto"},
]


def check_image(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    """
    Rejects non-images and oversized files.

    Raises:
        ValidationError: The file is not an allowed image
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed!")
    extension = (filename or "").rsplit(".", 1)[-1].lower() if filename and "." in filename else None
    if extension and extension not in ALLOWED_IMAGE_FORMATS:
        raise ValidationError(f"Image format '{extension}' is not allowed")
    if size > MAX_IMAGE_BYTES:
        raise ValidationError("File too large. Maximum size is 50MB")


class ImageService:
    """
    Wraps the Cloudinary uploader and admin API for product images.
    """

    def __init__(self):
        self._configured = False

    def _configure(self):
        if not settings.cloudinary_configured:
            logger.error("Cloudinary configuration missing")
            raise ExternalServiceError(
                "Cloudinary not configured. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY, and CLOUDINARY_API_SECRET in your .env file."
            )
        if not self._configured:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )
            self._configured = True

    async def upload(self, content: bytes, filename: Optional[str]) -> str:
        """
        Uploads one image.

        Returns:
            The secure URL of the stored image

        Raises:
            ExternalServiceError: Not configured, or the upload failed
        """
        self._configure()

        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(content),
                folder=settings.CLOUDINARY_FOLDER,
                allowed_formats=list(ALLOWED_IMAGE_FORMATS),
                transformation=UPLOAD_TRANSFORMATION,
                timeout=settings.CLOUDINARY_TIMEOUT,
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary upload failed for {filename}: {e}")
            raise ExternalServiceError(str(e) or "Image upload failed")

        secure_url = result.get("secure_url")
        logger.info(f"Image uploaded: {secure_url}")
        return secure_url

    async def upload_many(self, files: List[Dict[str, Any]]) -> List[str]:
        return [await self.upload(f["content"], f.get("filename")) for f in files]

    async def ping(self) -> Dict[str, Any]:
        self._configure()
        try:
            result = await run_in_threadpool(cloudinary.api.ping)
            return {"success": True, "message": "Cloudinary connection successful", "result": dict(result)}
        except cloudinary.exceptions.Error as e:
            logger.warning(f"Cloudinary ping failed: {e}")
            return {"success": False, "error": str(e)}

    async def diagnostics(self) -> Dict[str, Any]:
        configuration = {
            "cloud_name": "✓ Set" if settings.CLOUDINARY_CLOUD_NAME else "✗ Missing",
            "api_key": "✓ Set" if settings.CLOUDINARY_API_KEY else "✗ Missing",
            "api_secret": "✓ Set" if settings.CLOUDINARY_API_SECRET else "✗ Missing",
        }
        ping = await self.ping() if settings.cloudinary_configured else None
        return {
            "configuration": configuration,
            "ping": ping,
            "message": "Cloudinary is configured and working!" if ping and ping["success"]
            else "Cloudinary configuration issue detected",
        }


# Global image service instance
_image_service: Optional[ImageService] = None


def get_image_service() -> ImageService:
    """Get or create the global image service instance."""
    global _image_service
    if _image_service is None:
        _image_service = ImageService()
    return _image_service
