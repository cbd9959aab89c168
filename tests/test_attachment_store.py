"""
Rollbook Backend — Attachment Store Unit Tests
================================================

What:  Tests for upload validation, naming, replacement, and tolerant deletion.
How:   Real files in a per-test tmp_path directory; no database.
"""

import re
from unittest.mock import patch

import pytest

from rollbook.exceptions import (
    FileStorageError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from rollbook.services.attachment_store import AttachmentStore


class TestValidation:
    """validate() checks the declared type and the size, nothing else."""

    def test_image_within_limit_passes(self, store):
        store.validate("image/png", 1024)
        store.validate("image/jpeg", store.max_size)

    def test_any_image_subtype_passes(self, store):
        store.validate("image/webp", 10)
        store.validate("IMAGE/GIF", 10)

    def test_non_image_rejected(self, store):
        with pytest.raises(UnsupportedMediaTypeError, match="Only images are allowed"):
            store.validate("application/pdf", 10)

    def test_missing_content_type_rejected(self, store):
        with pytest.raises(UnsupportedMediaTypeError):
            store.validate(None, 10)

    def test_oversized_rejected(self, store):
        with pytest.raises(PayloadTooLargeError, match="too large"):
            store.validate("image/png", store.max_size + 1)

    def test_upload_errors_are_validation_errors(self):
        assert issubclass(UnsupportedMediaTypeError, ValidationError)
        assert issubclass(PayloadTooLargeError, ValidationError)

    def test_default_limit_is_three_mebibytes(self, tmp_path):
        assert AttachmentStore(upload_dir=tmp_path).max_size == 3 * 1024 * 1024


class TestDirectory:

    def test_directory_created_on_construction(self, tmp_path):
        target = tmp_path / "nested" / "uploads"
        AttachmentStore(upload_dir=target)
        assert target.is_dir()

    def test_construction_is_idempotent(self, tmp_path):
        AttachmentStore(upload_dir=tmp_path / "uploads")
        AttachmentStore(upload_dir=tmp_path / "uploads")
        assert (tmp_path / "uploads").is_dir()

    def test_path_outside_directory_rejected(self, store):
        with pytest.raises(ValidationError):
            store.path_for("../escape.png")


class TestSave:

    @pytest.mark.asyncio
    async def test_save_writes_timestamp_named_file(self, store, make_upload, sample_image_bytes):
        filename = await store.save(make_upload("portrait.PNG"))

        assert re.fullmatch(r"\d{13}\.png", filename)
        assert (store.upload_dir / filename).read_bytes() == sample_image_bytes
        assert await store.exists(filename)

    @pytest.mark.asyncio
    async def test_save_keeps_only_the_suffix(self, store, make_upload):
        filename = await store.save(make_upload("../../etc/photo.jpg"))
        assert (store.upload_dir / filename).is_file()
        assert filename.endswith(".jpg")
        assert "/" not in filename

    @pytest.mark.asyncio
    async def test_save_rejects_non_image_before_writing(self, store, make_upload):
        with pytest.raises(UnsupportedMediaTypeError):
            await store.save(make_upload("notes.txt", b"hello", "text/plain"))
        assert list(store.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_save_rejects_oversized_before_writing(self, tmp_path, make_upload):
        store = AttachmentStore(upload_dir=tmp_path / "small", max_size=1024)
        with pytest.raises(PayloadTooLargeError):
            await store.save(make_upload("big.png", b"x" * 1025))
        assert list(store.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_same_millisecond_does_not_overwrite(self, store, make_upload):
        """A taken name is retried with a later token instead of overwritten."""
        tokens = iter(["1700000000000.png", "1700000000000.png", "1700000000001.png"])
        with patch.object(store, "_generate_filename", side_effect=lambda ext: next(tokens)):
            first = await store.save(make_upload("a.png", b"first"))
            second = await store.save(make_upload("b.png", b"second"))

        assert first == "1700000000000.png"
        assert second == "1700000000001.png"
        assert (store.upload_dir / first).read_bytes() == b"first"
        assert (store.upload_dir / second).read_bytes() == b"second"

    @pytest.mark.asyncio
    async def test_exhausted_names_raise_storage_error(self, tmp_path, make_upload):
        store = AttachmentStore(upload_dir=tmp_path / "u", save_attempts=2)
        (store.upload_dir / "1700000000000.png").write_bytes(b"taken")

        with patch.object(store, "_generate_filename", return_value="1700000000000.png"):
            with pytest.raises(FileStorageError):
                await store.save(make_upload("a.png"))

        assert (store.upload_dir / "1700000000000.png").read_bytes() == b"taken"


class TestDeleteAndReplace:

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, store, make_upload):
        filename = await store.save(make_upload())
        await store.delete(filename)
        assert not await store.exists(filename)

    @pytest.mark.asyncio
    async def test_delete_missing_file_is_noop(self, store):
        await store.delete("1234567890123.png")
        await store.delete(None)

    @pytest.mark.asyncio
    async def test_delete_swallows_os_errors(self, store, make_upload):
        filename = await store.save(make_upload())
        with patch("aiofiles.os.remove", side_effect=PermissionError("read-only")):
            await store.delete(filename)
        assert await store.exists(filename)

    @pytest.mark.asyncio
    async def test_replace_saves_new_then_removes_old(self, store, make_upload):
        old = await store.save(make_upload("old.png", b"old"))
        new = await store.replace(old, make_upload("new.jpg", b"new"))

        assert new != old
        assert not await store.exists(old)
        assert (store.upload_dir / new).read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_failed_replace_keeps_old_file(self, store, make_upload):
        old = await store.save(make_upload("old.png", b"old"))
        with pytest.raises(UnsupportedMediaTypeError):
            await store.replace(old, make_upload("new.txt", b"new", "text/plain"))
        assert await store.exists(old)

    @pytest.mark.asyncio
    async def test_replace_without_old_file(self, store, make_upload):
        new = await store.replace(None, make_upload())
        assert await store.exists(new)
