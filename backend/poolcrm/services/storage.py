"""
Local filesystem storage for uploaded documents.

Objects are addressed by a relative key of the form
``{entity_type}/{company_id}/{entity_id}/{file_name}`` under
``DOCUMENT_STORAGE_ROOT``.
"""
import logging
import os
import posixpath
from pathlib import Path

logger = logging.getLogger(__name__)

DOCUMENT_STORAGE_ROOT = os.getenv("DOCUMENT_STORAGE_ROOT", "./storage/documents")
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class InvalidFileName(ValueError):
    """File name is empty or resolves outside its folder."""


def clean_file_name(file_name: str) -> str:
    """
    Reduce an uploaded file name to its base name.

    Raises:
        InvalidFileName: If nothing usable remains
    """
    name = posixpath.basename((file_name or "").replace("\\", "/")).strip()
    if not name or set(name) == {"."}:
        raise InvalidFileName("Invalid file name")
    return name


def document_key(entity_type: str, company_id: str, entity_id, file_name: str) -> str:
    return f"{entity_type}/{company_id}/{entity_id}/{clean_file_name(file_name)}"


class DocumentStorage:
    """Stores document bytes beneath a root directory."""

    def __init__(self, root: str = None):
        self.root = Path(root or DOCUMENT_STORAGE_ROOT).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise InvalidFileName("Path escapes storage root")
        return path

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def save(self, key: str, data: bytes) -> int:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored document %s (%d bytes)", key, len(data))
        return len(data)

    def read(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def local_path(self, key: str) -> Path:
        return self._path(key)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        return True


# PUBLIC_INTERFACE
def get_storage() -> DocumentStorage:
    """FastAPI dependency returning the configured document storage."""
    return DocumentStorage()
