"""Attachment Storage — message files on local disk.

Invariants:
    - Only extensions from settings.allowed_upload_extensions are accepted, and the
      declared content type must name the same family (image/* or application/pdf)
    - Files larger than settings.max_upload_bytes are rejected before anything is
      written, and read_upload never buffers more than one byte past the limit
    - Stored names are generated (<epoch-ms>-<random><ext>); client file names are
      kept only as display metadata
    - resolve() never returns a path outside the messages directory
"""

import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from marketplace.config import Settings, get_settings
from marketplace.core.domain_types import AttachmentKind
from marketplace.core.errors import ResourceNotFoundError, UploadRejectedError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/messages"


@dataclass(frozen=True)
class StoredAttachment:
    path: Path
    url: str
    kind: AttachmentKind
    original_name: str


class AttachmentStorage:
    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self.directory = Path(self._settings.upload_dir) / "messages"

    def _too_large(self) -> UploadRejectedError:
        limit_mb = self._settings.max_upload_bytes // (1024 * 1024)
        return UploadRejectedError(f"File exceeds {limit_mb}MB")

    async def read_upload(self, upload: UploadFile) -> bytes:
        """Read the upload body, never pulling more than max_upload_bytes + 1 bytes."""
        limit = self._settings.max_upload_bytes
        if upload.size is not None and upload.size > limit:
            raise self._too_large()
        data = await upload.read(limit + 1)
        if len(data) > limit:
            raise self._too_large()
        return data

    def check(self, filename: str | None, content_type: str | None, size: int) -> str:
        """Return the normalized extension or raise UploadRejectedError."""
        if not filename:
            raise UploadRejectedError("No file uploaded")
        if size > self._settings.max_upload_bytes:
            raise self._too_large()
        ext = Path(filename).suffix.lower()
        allowed = {e.lower() for e in self._settings.allowed_upload_extensions}
        type_ok = bool(content_type) and (
            content_type.startswith("image/") or content_type == "application/pdf"
        )
        if ext not in allowed or not type_ok:
            raise UploadRejectedError(
                "Only images (JPEG, PNG, GIF, WebP) and PDF files are allowed",
            )
        return ext

    def save(self, filename: str, content_type: str | None, data: bytes) -> StoredAttachment:
        ext = self.check(filename, content_type, len(data))
        self.directory.mkdir(parents=True, exist_ok=True)
        stored_name = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
        path = self.directory / stored_name
        path.write_bytes(data)
        return StoredAttachment(
            path=path,
            url=f"{PUBLIC_PREFIX}/{stored_name}",
            kind=AttachmentKind.from_content_type(content_type),
            original_name=filename,
        )

    def discard(self, stored: StoredAttachment) -> None:
        try:
            stored.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove attachment {stored.path}: {e}")

    def is_writable(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Attachment directory {self.directory} unavailable: {e}")
            return False
        return os.access(self.directory, os.W_OK)

    def resolve(self, stored_name: str) -> Path:
        path = (self.directory / stored_name).resolve()
        if path.parent != self.directory.resolve() or not path.is_file():
            raise ResourceNotFoundError("File", stored_name)
        return path


def get_attachment_storage() -> AttachmentStorage:
    """FastAPI dependency; overridden in tests."""
    return AttachmentStorage()
