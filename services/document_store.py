"""
Blob storage for uploaded compliance documents.
The aggregate only keeps the opaque locator returned by store().

Layout under settings.document_storage_path:
    YYYY/MM/DD/<uuid>/<sanitised file name>
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from config import settings
from domain.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class DocumentStore(Protocol):
    def store(self, data: bytes, filename: str, mime_type: str) -> str: ...

    def fetch(self, locator: str) -> bytes: ...

    def delete(self, locator: str) -> bool: ...


class LocalDocumentStore:
    def __init__(self, base_path: Optional[Path] = None):
        self.base_path = Path(base_path or settings.document_storage_path).resolve()

    def _path_for(self, locator: str) -> Path:
        path = (self.base_path / locator).resolve()
        if self.base_path not in path.parents:
            raise InvalidArgumentError("Invalid document locator", "locator")
        return path

    def validate(self, data: bytes, mime_type: str) -> None:
        if not data:
            raise InvalidArgumentError("File is empty", "file")
        max_bytes = settings.max_document_size_mb * 1024 * 1024
        if len(data) > max_bytes:
            raise InvalidArgumentError(
                f"File exceeds the {settings.max_document_size_mb} MB limit", "file"
            )
        if mime_type not in settings.allowed_document_type_list:
            raise InvalidArgumentError(f"File type {mime_type} is not allowed", "mime_type")

    def store(self, data: bytes, filename: str, mime_type: str) -> str:
        self.validate(data, mime_type)
        now = datetime.now(timezone.utc)
        safe_name = _UNSAFE_CHARS.sub("_", Path(filename or "document").name) or "document"
        locator = f"{now:%Y/%m/%d}/{uuid.uuid4().hex}/{safe_name}"
        path = self._path_for(locator)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored document %s (%d bytes, %s)", locator, len(data), mime_type)
        return locator

    def fetch(self, locator: str) -> bytes:
        path = self._path_for(locator)
        if not path.is_file():
            raise FileNotFoundError(locator)
        return path.read_bytes()

    def delete(self, locator: str) -> bool:
        path = self._path_for(locator)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Deleted document %s", locator)
        return True


def get_document_store() -> DocumentStore:
    return LocalDocumentStore()
