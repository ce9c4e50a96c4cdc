"""
Twinshot Backend — File Storage Service
=========================================

What:  Validates uploaded captures, writes them under the storage root, hands
       out paths for generated composites, and removes files on cleanup.
How:   Validates extension and size, stores in date-organized directories,
       and generates UUID filenames so user input never reaches the path.
Who:   One instance per application, built by `create_app()` from its Settings
       and stored on `app.state.file_service`. Handed to PostService during
       post admission and used by the `/uploads` route to resolve stored files.

Directory Structure:
    uploads/
    └── 2024/
        └── 01/
            └── 15/
                ├── a1b2c3d4-....jpg   (front capture)
                ├── e5f6a7b8-....jpg   (back capture)
                └── c9d0e1f2-....png   (composite)

Decoding the image content is left to the composite builder, which reports
unreadable captures as CompositionFailedError.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings as default_settings
from app.exceptions import FileStorageError, ForbiddenError, ValidationError

logger = logging.getLogger(__name__)

# Capture formats the mobile client produces and Pillow can decode
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


@dataclass
class ImageUpload:
    """One uploaded multipart part, already read into memory."""
    filename: str
    content: bytes
    content_length: Optional[int] = None


class FileService:
    """
    Manages the upload storage lifecycle.

    Lifecycle of a capture:
        1. validate_upload(): extension + size checks, no disk access
        2. store_file(): bytes written to YYYY/MM/DD/<uuid>.<ext>
        3. Relative path recorded on the Post row
        4. cleanup_file(): best-effort removal when the post is not admitted
    """

    def __init__(
        self,
        storage_root: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        """
        Args:
            storage_root:  Directory holding every stored file. Defaults to
                           the environment-loaded settings.
            max_file_size: Largest accepted capture in bytes, same default.
        """
        self.storage_root = Path(storage_root or default_settings.storage_root).resolve()
        self.max_file_size = max_file_size or default_settings.max_file_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str, field: str = "file") -> str:
        """
        Checks that the file extension is in the allowed list.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field=field,
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(
        self,
        content_length: Optional[int],
        actual_size: int,
        field: str = "file",
    ) -> None:
        """
        Validate file size against the configured maximum.

        Checks the reported Content-Length first, then the actual byte count,
        and rejects empty parts.

        Raises:
            ValidationError with a human-readable size limit message
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded file is empty.",
                field=field,
            )

        if content_length and content_length > self.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field=field,
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) is too large; maximum is {max_mb:.0f}MB.",
                field=field,
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_upload(self, upload: ImageUpload, field: str) -> str:
        """Runs every pre-storage check on one part; returns its extension."""
        ext = self.validate_extension(upload.filename, field)
        self.validate_size(upload.content_length, len(upload.content), field)
        return ext

    def allocate_path(self, extension: str, day: Optional[date] = None) -> Tuple[Path, str]:
        """
        Generate a unique, date-organized file path and create its directory.

        `day` names the YYYY/MM/DD directory; PostService passes the post's
        calendar day so a post's files share its date. Defaults to the
        server-local date.

        Returns: Tuple of (absolute_path, relative_path_from_storage_root).
        """
        date_dir = (day or date.today()).strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create directory %s: %s", absolute_path.parent, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path.parent), "os_error": str(e)},
            )

        return absolute_path, relative_path

    async def store_file(
        self, content: bytes, extension: str, day: Optional[date] = None
    ) -> Tuple[str, str]:
        """
        Write validated content to disk without blocking the event loop.

        Returns: Tuple of (absolute_path, relative_path).
        Raises:  FileStorageError if the write fails.
        """
        absolute_path, relative_path = self.allocate_path(extension, day)

        try:
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage if it exists.

        Best-effort: missing files are ignored and other failures are logged,
        never raised. A leftover file is an orphan, not an error.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    def resolve(self, relative_path: str) -> Path:
        """
        Map a stored relative path back to an absolute one.

        Raises:
            ForbiddenError if the path escapes the storage root.
        """
        full_path = (self.storage_root / relative_path).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            raise ForbiddenError(
                message="Invalid file path",
                context={"path": relative_path},
            )
        return full_path

