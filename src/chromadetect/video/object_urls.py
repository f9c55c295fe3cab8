from __future__ import annotations
import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Optional, Set
from ..types import MediaBlob

log = logging.getLogger(__name__)

class ObjectUrlStore:
    """Spool blobs to temp files and hand out their paths as object URLs.

    A URL stays valid until revoke_object_url(); revoking deletes the file.
    """
    def __init__(self, tmp_dir: str | Path | None = None):
        self.tmp_dir = str(tmp_dir) if tmp_dir else None
        self._live: Set[str] = set()

    def create_object_url(self, blob: MediaBlob) -> str:
        suffix = mimetypes.guess_extension(blob.type or "") or Path(blob.name or "").suffix or ".bin"
        fd, path = tempfile.mkstemp(prefix="chromadetect-", suffix=suffix, dir=self.tmp_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob.data)
        except BaseException:
            os.unlink(path)
            raise
        self._live.add(path)
        log.debug("object url created: %s (%d bytes)", path, len(blob.data))
        return path

    def revoke_object_url(self, url: str) -> None:
        if url not in self._live:
            return
        self._live.discard(url)
        try:
            os.unlink(url)
        except FileNotFoundError:
            pass
        log.debug("object url revoked: %s", url)

    def is_live(self, url: Optional[str]) -> bool:
        return url in self._live

    def __len__(self) -> int:
        return len(self._live)
