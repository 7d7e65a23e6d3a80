from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from werkzeug.utils import secure_filename

from ..common.logging_utils import get_logger
from ..common.validators import validate_file
from ..core.constants import ALLOWED_PHOTO_FILE_EXTENSIONS, ALLOWED_PHOTO_TYPES, MAX_PHOTO_BYTES, PHOTO_EXTENSIONS
from ..core.exceptions import ValidationError

logger = get_logger(__name__)

PROFILE_PHOTO_DIR = "profile-photos"


class FileStorageService:
    """Stores uploaded files on local disk under `upload_folder`.

    Files are served by the app under `public_prefix` (see the storage controller).
    """

    def __init__(self, upload_folder: str | Path, *, public_prefix: str = "/uploads", max_photo_bytes: int = MAX_PHOTO_BYTES):
        self._root = Path(upload_folder)
        self._public_prefix = public_prefix.rstrip("/")
        self._max_photo_bytes = int(max_photo_bytes)

    @property
    def root(self) -> Path:
        return self._root

    def save_profile_photo(
        self,
        *,
        user_id: str,
        filename: Optional[str],
        stream: BinaryIO,
        content_type: Optional[str],
        size: int,
    ) -> str:
        """Validate and store a profile photo; returns its public URL path."""

        validate_file(
            filename=filename,
            content_type=content_type,
            size=int(size),
            allowed_types=ALLOWED_PHOTO_TYPES,
            max_size=self._max_photo_bytes,
        )

        client_extension = os.path.splitext(secure_filename(filename or ""))[1].lower()
        if client_extension not in ALLOWED_PHOTO_FILE_EXTENSIONS:
            raise ValidationError("Only JPG, PNG, WEBP or GIF images can be uploaded")
        # stored name follows the checked content type, never the client filename
        extension = PHOTO_EXTENSIONS[(content_type or "").lower()]
        safe_user = secure_filename(user_id) or "anonymous"
        relative = Path(PROFILE_PHOTO_DIR) / safe_user / f"{uuid.uuid4().hex}{extension}"

        target = self._root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as fh:
            shutil.copyfileobj(stream, fh)

        logger.info("stored profile photo for %s at %s", user_id, relative)
        return f"{self._public_prefix}/{relative.as_posix()}"
