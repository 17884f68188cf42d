"""Attachment Storage — verifies upload checks and path containment."""

import pytest

from marketplace.config import Settings
from marketplace.core.domain_types import AttachmentKind
from marketplace.core.errors import ResourceNotFoundError, UploadRejectedError
from marketplace.infrastructure.file_storage import AttachmentStorage


def test_save_generates_name_and_keeps_original(attachment_storage):
    stored = attachment_storage.save("My Notes.PDF", "application/pdf", b"%PDF")

    assert stored.original_name == "My Notes.PDF"
    assert stored.kind is AttachmentKind.DOCUMENT
    assert stored.path.name.endswith(".pdf")
    assert "My Notes" not in stored.path.name
    assert attachment_storage.resolve(stored.path.name) == stored.path.resolve()


def test_discard_removes_file(attachment_storage):
    stored = attachment_storage.save("a.png", "image/png", b"png")
    attachment_storage.discard(stored)
    assert not stored.path.exists()


@pytest.mark.parametrize("filename,content_type", [
    ("notes.txt", "text/plain"),
    ("fake.png", "application/octet-stream"),
    ("doc.pdf", None),
])
def test_check_rejects_disallowed_files(attachment_storage, filename, content_type):
    with pytest.raises(UploadRejectedError):
        attachment_storage.check(filename, content_type, 10)


def test_resolve_refuses_path_escape(attachment_storage, tmp_path):
    (tmp_path / "secret.txt").write_text("nope")
    with pytest.raises(ResourceNotFoundError):
        attachment_storage.resolve("../secret.txt")


class RecordingUpload:
    """Stands in for UploadFile; records how many bytes each read asked for."""

    def __init__(self, body: bytes, size: int | None = None):
        self._body = body
        self.size = size
        self.requested: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.requested.append(size)
        return self._body if size < 0 else self._body[:size]


async def test_read_upload_stops_one_byte_past_limit(tmp_path):
    storage = AttachmentStorage(Settings(upload_dir=tmp_path, max_upload_bytes=1024))
    upload = RecordingUpload(b"0" * 10_000)

    with pytest.raises(UploadRejectedError, match="File exceeds"):
        await storage.read_upload(upload)

    assert upload.requested == [1025]


async def test_read_upload_rejects_declared_size_without_reading(tmp_path):
    storage = AttachmentStorage(Settings(upload_dir=tmp_path, max_upload_bytes=1024))
    upload = RecordingUpload(b"0" * 2048, size=2048)

    with pytest.raises(UploadRejectedError):
        await storage.read_upload(upload)

    assert upload.requested == []


async def test_read_upload_returns_body_within_limit(attachment_storage):
    upload = RecordingUpload(b"%PDF-1.4", size=8)
    assert await attachment_storage.read_upload(upload) == b"%PDF-1.4"
