"""
Rollbook Backend — Attachment Store (Profile Picture Files)
============================================================

What:  Validates, stores, replaces, and removes uploaded profile pictures.
Why:   Centralizes every file system operation on the upload directory.
How:   Checks the declared content type and size, writes the file under a
       name derived from the upload time, deletes tolerantly.
Who:   Called by StudentService; the /uploads static mount serves the files.

Naming:
    <millisecond-timestamp><original-extension>, e.g. 1718000000123.png

    Files are created with exclusive mode ("xb"), so an existing file is
    never overwritten. If two uploads land in the same millisecond, the
    loser waits one millisecond and takes the next token (tenacity retry).

Failure semantics:
    validate → raises before any byte is written
    save     → FileStorageError on OS failure; no partial file left behind
    delete   → missing file is a no-op; other OS errors are logged and swallowed
    replace  → new file is saved before the old one is removed
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Protocol, Union

import aiofiles
import aiofiles.os
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from rollbook.config import settings
from rollbook.exceptions import (
    FileStorageError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class Upload(Protocol):
    """The part of starlette's UploadFile the store relies on."""

    filename: Optional[str]

    @property
    def content_type(self) -> Optional[str]: ...

    async def read(self, size: int = -1) -> bytes: ...


class AttachmentStore:
    """
    Manages the upload directory.

    The directory is created once, here, at construction time. Creating it
    is idempotent, so several stores (or processes) may share a directory.
    """

    def __init__(
        self,
        upload_dir: Optional[Union[str, Path]] = None,
        max_size: Optional[int] = None,
        save_attempts: Optional[int] = None,
    ):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_size = max_size or settings.max_upload_size
        self.save_attempts = save_attempts or settings.upload_save_attempts
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("AttachmentStore initialized with upload_dir=%s", self.upload_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate(self, content_type: Optional[str], size: int) -> None:
        """
        Check an upload's declared content type and its size.

        Raises:
            UnsupportedMediaTypeError: content type does not start with image/
            PayloadTooLargeError: size exceeds self.max_size
        """
        self._validate_content_type(content_type)
        if size > self.max_size:
            raise PayloadTooLargeError(size=size, max_size=self.max_size)

    def _validate_content_type(self, content_type: Optional[str]) -> None:
        if not content_type or not content_type.lower().startswith("image/"):
            raise UnsupportedMediaTypeError(content_type)

    # ── Paths ─────────────────────────────────────────────────────────────

    def path_for(self, filename: str) -> Path:
        """
        Absolute path of a stored file.

        Raises ValidationError for names that would escape the upload directory.
        """
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir:
            raise ValidationError(
                message="Invalid attachment name",
                field="profile_pic",
                context={"filename": filename},
            )
        return path

    def _generate_filename(self, extension: str) -> str:
        return f"{time.time_ns() // 1_000_000}{extension}"

    @staticmethod
    def _extension_of(original_name: Optional[str]) -> str:
        # Only the suffix of the client's name survives; never its directory part
        return Path(os.path.basename(original_name or "")).suffix.lower()

    async def exists(self, filename: Optional[str]) -> bool:
        if not filename:
            return False
        try:
            path = self.path_for(filename)
        except ValidationError:
            return False
        return await aiofiles.os.path.isfile(path)

    # ── Write ─────────────────────────────────────────────────────────────

    async def save(self, upload: Upload) -> str:
        """
        Validate and store an upload.

        The content type is checked before reading; at most max_size + 1
        bytes are read, which is enough to detect an oversized upload
        without buffering all of it.

        Returns:
            The generated filename (relative to the upload directory).
        """
        self._validate_content_type(upload.content_type)
        content = await upload.read(self.max_size + 1)
        self.validate(upload.content_type, len(content))
        return await self.write_bytes(content, self._extension_of(upload.filename))

    async def write_bytes(self, content: bytes, extension: str) -> str:
        """Write already-validated bytes under a fresh time-based filename."""
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(FileExistsError),
                stop=stop_after_attempt(self.save_attempts),
                wait=wait_fixed(0.001),
                before_sleep=before_sleep_log(logger, logging.DEBUG),
                reraise=True,
            ):
                with attempt:
                    filename = self._generate_filename(extension)
                    await self._write_exclusive(self.upload_dir / filename, content)
        except FileExistsError as e:
            logger.error("No free filename after %d attempts", self.save_attempts)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"os_error": str(e)},
            )
        except OSError as e:
            logger.error("Failed to store upload in %s: %s", self.upload_dir, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"upload_dir": str(self.upload_dir), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return filename

    async def _write_exclusive(self, path: Path, content: bytes) -> None:
        try:
            async with aiofiles.open(path, "xb") as f:
                await f.write(content)
        except FileExistsError:
            # Another upload owns this name; leave its file alone
            raise
        except OSError:
            await self._remove_quietly(path)
            raise

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, filename: Optional[str]) -> None:
        """
        Remove a stored file.

        A missing file (or a null reference) is a no-op. Any other failure
        is logged and swallowed: a leftover file is a maintenance concern,
        not a reason to fail the request.
        """
        if not filename:
            return
        try:
            path = self.path_for(filename)
        except ValidationError:
            logger.warning("Refusing to delete attachment outside upload dir: %s", filename)
            return
        if not await aiofiles.os.path.exists(path):
            logger.debug("Delete: file already gone: %s", filename)
            return
        await self._remove_quietly(path)

    async def _remove_quietly(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
            logger.info("Deleted file: %s", path.name)
        except FileNotFoundError:
            logger.debug("Delete: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to delete file %s: %s", path.name, str(e))

    async def replace(self, old_filename: Optional[str], upload: Upload) -> str:
        """
        Store a new upload, then remove the file it supersedes.

        If saving fails, the old file is untouched.
        """
        new_filename = await self.save(upload)
        if old_filename and old_filename != new_filename:
            await self.delete(old_filename)
        return new_filename


# Default store rooted at settings.upload_dir
attachment_store = AttachmentStore()
