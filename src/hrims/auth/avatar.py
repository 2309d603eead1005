from __future__ import annotations

import logging
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Union
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from ..core.constants import API_PREFIX, AVATAR_FORMATS, AVATAR_MAX_BYTES, AVATAR_SIZE
from ..core.exceptions import NotFoundError, ValidationError
from .model import UserAccount
from .repository import UserRepository

logger = logging.getLogger(__name__)

AVATAR_URL_PREFIX = f"{API_PREFIX}/auth/avatar/"


class AvatarService:
    """Profile pictures: validated, shrunk to a square thumbnail and stored as PNG files."""

    def __init__(self, users: UserRepository, directory: Union[str, Path]):
        self._users = users
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _thumbnail(self, data: bytes) -> Image.Image:
        try:
            with Image.open(BytesIO(data)) as img:
                if img.format not in AVATAR_FORMATS:
                    raise ValidationError(f"Avatar must be one of: {', '.join(AVATAR_FORMATS)}")
                thumb = img.convert("RGBA")
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
            raise ValidationError(f"Avatar must be one of: {', '.join(AVATAR_FORMATS)}")
        thumb.thumbnail(AVATAR_SIZE)
        return thumb

    def save(self, user_id: int, stream: BinaryIO) -> UserAccount:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        data = stream.read(AVATAR_MAX_BYTES + 1)
        if not data:
            raise ValidationError("Avatar file is empty")
        if len(data) > AVATAR_MAX_BYTES:
            raise ValidationError(f"Avatar cannot be larger than {AVATAR_MAX_BYTES // (1024 * 1024)} MB")
        thumb = self._thumbnail(data)

        self._directory.mkdir(parents=True, exist_ok=True)
        filename = f"user-{user.user_id}-{uuid4().hex}.png"
        path = self._directory / filename
        thumb.save(path, format="PNG")

        updated = replace(user, avatar_url=AVATAR_URL_PREFIX + filename)
        try:
            self._users.update(updated)
        except Exception:
            path.unlink(missing_ok=True)
            raise

        if user.avatar_url and user.avatar_url.startswith(AVATAR_URL_PREFIX):
            (self._directory / Path(user.avatar_url[len(AVATAR_URL_PREFIX):]).name).unlink(missing_ok=True)
        logger.info("Avatar updated for user %s", user.username)
        return updated
