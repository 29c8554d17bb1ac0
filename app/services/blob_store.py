"""
Disk-backed blob store for uploaded map files.

Files are written under a root directory with a time-prefixed, collision-resistant
name and addressed by their public path (public prefix + stored name). Contents
are opaque: nothing here parses GeoJSON, KML or TIFF.
"""

import logging
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"


def uploads_prefix(api_prefix: str = "") -> str:
    """Public path prefix for stored files when routes are mounted under `api_prefix`."""
    return f"{api_prefix.rstrip('/')}{PUBLIC_PREFIX}"


class BlobNotFoundError(LookupError):
    """No stored blob exists for the given path."""


@dataclass(frozen=True)
class StoredBlob:
    original_name: str
    stored_name: str
    storage_path: str
    size_bytes: int


def _safe_basename(original_name: str) -> str:
    """Reduce a client-supplied filename to a bare, filesystem-safe basename."""
    name = Path(original_name.replace("\\", "/")).name
    name = re.sub(r"[^\w.\-]+", "_", name).strip("._")
    return name or "file"


class LocalBlobStore:
    def __init__(self, root: str | Path, public_prefix: str = PUBLIC_PREFIX):
        self.root = Path(root)
        self.public_prefix = public_prefix

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _stored_name(self, original_name: str) -> str:
        # Millisecond prefix keeps names ordered by upload time; the random part avoids same-ms collisions
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{_safe_basename(original_name)}"

    def _resolve(self, stored_path: str) -> Path:
        prefix = self.public_prefix
        name = stored_path[len(prefix):] if stored_path.startswith(prefix) else stored_path
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise BlobNotFoundError(stored_path)
        return self.root / name

    def store(self, data: bytes, original_name: str) -> StoredBlob:
        """Write `data` to a fresh file and return where it can be retrieved."""
        self.ensure_root()
        stored_name = self._stored_name(original_name)
        target = self.root / stored_name
        # "xb" fails instead of overwriting if the name is somehow taken
        with open(target, "xb") as fh:
            fh.write(data)
        logger.info(f"Stored upload {original_name!r} as {stored_name} ({len(data)} bytes)")
        return StoredBlob(
            original_name=original_name,
            stored_name=stored_name,
            storage_path=f"{self.public_prefix}{stored_name}",
            size_bytes=len(data),
        )

    def serve(self, stored_path: str) -> bytes:
        """Return the bytes stored at `stored_path` (public path or bare stored name)."""
        path = self._resolve(stored_path)
        if not path.is_file():
            raise BlobNotFoundError(stored_path)
        return path.read_bytes()

    def delete(self, stored_path: str) -> None:
        path = self._resolve(stored_path)
        try:
            path.unlink()
        except FileNotFoundError:
            raise BlobNotFoundError(stored_path) from None
        logger.info(f"Deleted upload {path.name}")
