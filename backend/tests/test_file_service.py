"""
Twinshot Backend — File Service Unit Tests
=============================================

What:  Tests for FileService validation, storage layout, cleanup and path
       resolution.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png, .webp), case-insensitive
    ✅ Rejected extensions (.gif, .pdf, .exe, none)
    ✅ Size limits and empty parts
    ✅ Date-organized UUID paths
    ✅ Best-effort cleanup
    ✅ Paths escaping the storage root are refused
"""

import re
from datetime import date

import pytest

from app.exceptions import ForbiddenError, ValidationError
from app.services.file_service import FileService, ImageUpload


class TestFileValidation:
    """Tests for validation logic in FileService."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("name", ["photo.jpg", "photo.jpeg", "photo.png", "photo.webp"])
    def test_validate_extension_allowed(self, name):
        assert self.service.validate_extension(name) == "." + name.rsplit(".", 1)[1]

    def test_validate_extension_uppercase(self):
        """Extension check should be case-insensitive."""
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("photo.Jpeg") == ".jpeg"

    @pytest.mark.parametrize("name", ["animation.gif", "document.pdf", "malware.exe", "noextension"])
    def test_validate_extension_rejected(self, name):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(name, "front_image")

    def test_rejected_extension_names_the_field(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_extension("doc.pdf", "back_image")
        assert exc_info.value.field == "back_image"

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_validate_size_over_limit(self):
        size = 10 * 1024 * 1024 + 1
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(None, size)

    def test_validate_size_reported_length_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(50 * 1024 * 1024, 1000)

    def test_validate_size_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    def test_configured_limit_is_enforced(self, temp_storage):
        small = FileService(storage_root=temp_storage, max_file_size=1024)
        small.validate_size(None, 1024)
        with pytest.raises(ValidationError, match="too large"):
            small.validate_size(None, 1025)

    def test_validate_upload_returns_extension(self, sample_image_bytes):
        upload = ImageUpload(filename="front.JPG", content=sample_image_bytes)
        assert self.service.validate_upload(upload, "front_image") == ".jpg"


class TestFileStorage:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_store_file_uses_date_directory(self, sample_image_bytes):
        abs_path, rel_path = await self.service.store_file(sample_image_bytes, ".jpg")

        assert re.fullmatch(r"\d{4}/\d{2}/\d{2}/[0-9a-f-]{36}\.jpg", rel_path)
        with open(abs_path, "rb") as f:
            assert f.read() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_store_file_uses_given_day(self, sample_image_bytes):
        _, rel_path = await self.service.store_file(sample_image_bytes, ".jpg", date(2024, 1, 15))
        assert rel_path.startswith("2024/01/15/")

        _, composite_rel = self.service.allocate_path(".png", date(2024, 1, 15))
        assert composite_rel.startswith("2024/01/15/")

    def test_allocate_path_is_unique(self):
        first, _ = self.service.allocate_path(".png")
        second, _ = self.service.allocate_path(".png")
        assert first != second
        assert first.parent.is_dir()

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        test_file = tmp_path / "test.jpg"
        test_file.write_bytes(b"test content")

        await self.service.cleanup_file(str(test_file))
        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        """cleanup_file should not raise for non-existent files."""
        await self.service.cleanup_file(str(tmp_path / "nonexistent.jpg"))

    # ── Resolution ────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_resolve_stored_path(self, sample_image_bytes):
        abs_path, rel_path = await self.service.store_file(sample_image_bytes, ".jpg")
        assert str(self.service.resolve(rel_path)) == abs_path

    def test_resolve_rejects_escape(self):
        with pytest.raises(ForbiddenError):
            self.service.resolve("../../etc/passwd")
