"""Image upload checks and object naming for avatars and listing photos."""

from __future__ import annotations

import asyncio
import io
import time
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from nyumbatz.config import StorageConfig
from nyumbatz.exceptions import ValidationFailed
from nyumbatz.sources.selector import DataSourceSelector

_PIL_FORMATS = {"image/jpeg": "JPEG", "image/png": "PNG", "image/webp": "WEBP"}
_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.content_type, "jpg")


def validate_image(upload: ImageUpload, max_bytes: int, accepted_types: list[str]) -> None:
    """Reject oversized files, disallowed types, and content that is not that type."""
    if upload.size == 0:
        raise ValidationFailed("File is empty", {"file": upload.filename})
    if upload.size > max_bytes:
        raise ValidationFailed(
            f"File size must be less than {round(max_bytes / 1024 / 1024)}MB",
            {"file": upload.filename},
        )
    if upload.content_type not in accepted_types:
        raise ValidationFailed(
            f"File type not allowed. Allowed types: {', '.join(accepted_types)}",
            {"file": upload.filename},
        )
    try:
        with Image.open(io.BytesIO(upload.data)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationFailed("File is not a readable image", {"file": upload.filename})
    if detected != _PIL_FORMATS.get(upload.content_type):
        raise ValidationFailed("File content does not match its type", {"file": upload.filename})


def avatar_path(user_id: str, upload: ImageUpload) -> str:
    return f"{user_id}/avatar.{upload.extension}"


def property_image_path(property_id: str, index: int, upload: ImageUpload, stamp: int | None = None) -> str:
    stamp = int(time.time() * 1000) if stamp is None else stamp
    return f"{property_id}/{stamp}-{index}.{upload.extension}"


class StorageService:
    def __init__(self, selector: DataSourceSelector, config: StorageConfig):
        self.selector = selector
        self.config = config

    async def upload_avatar(self, user_id: str, upload: ImageUpload, access_token: str | None = None) -> str:
        validate_image(upload, self.config.avatar_max_bytes, self.config.accepted_types)
        path = avatar_path(user_id, upload)
        return await self.selector.run(
            "upload_file",
            lambda src: src.upload_file(self.config.avatar_bucket, path, upload.data,
                                        upload.content_type, upsert=True),
            access_token,
        )

    async def upload_property_images(
        self, property_id: str, uploads: list[ImageUpload], access_token: str | None = None
    ) -> list[str]:
        """Check every image before uploading any; returns URLs in input order."""
        if not uploads:
            raise ValidationFailed("At least one image is required", {"files": "empty"})
        if len(uploads) > self.config.max_property_images:
            raise ValidationFailed(
                f"You can upload at most {self.config.max_property_images} images",
                {"files": str(len(uploads))},
            )
        for upload in uploads:
            validate_image(upload, self.config.property_image_max_bytes, self.config.accepted_types)

        stamp = int(time.time() * 1000)
        bucket = self.config.property_bucket

        async def _one(index: int, upload: ImageUpload) -> str:
            path = property_image_path(property_id, index, upload, stamp)
            return await self.selector.run(
                "upload_file",
                lambda src: src.upload_file(bucket, path, upload.data, upload.content_type),
                access_token,
            )

        return list(await asyncio.gather(*(_one(i, u) for i, u in enumerate(uploads))))
