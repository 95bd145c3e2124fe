"""
Client logo storage.

Logos are written to a local directory that is served as static files; a
stored logo is addressed by ``<LOGO_BASE_URL><uuid><ext>``. The default logo
lives in the same directory and is never deleted.

Replacing a logo is a three step sequence tracked by :class:`LogoChange`:
write the new file, persist the client record, delete the old file. If the
record cannot be persisted the new file is removed instead.
"""

import asyncio
import logging
import mimetypes
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urljoin

from fastapi import UploadFile

logger = logging.getLogger(__name__)

PACKAGED_DEFAULT_LOGO = Path(__file__).resolve().parent.parent / "static" / "default.png"

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class InvalidLogoError(ValueError):
    """The uploaded logo cannot be accepted."""


class LogoStorage:
    """Filesystem-backed store for client logos."""

    def __init__(
        self,
        upload_dir: str | Path,
        base_url: str,
        default_filename: str = "default.png",
        max_bytes: int = 1024 * 1024,
        allowed_types: Iterable[str] = tuple(_EXTENSIONS),
    ):
        self.upload_dir = Path(upload_dir)
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.default_filename = default_filename
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(allowed_types)

    @property
    def default_uri(self) -> str:
        return urljoin(self.base_url, self.default_filename)

    def _filename_for(self, uri: str) -> Optional[str]:
        """Map a URI back to a stored filename, or None if it is not ours."""
        if not uri or not uri.startswith(self.base_url):
            return None
        name = uri[len(self.base_url):]
        # Reject anything that is not a bare filename in the upload dir.
        if not name or Path(name).name != name or name == self.default_filename:
            return None
        return name

    def ensure_default(self, source: str | Path = PACKAGED_DEFAULT_LOGO) -> None:
        """Create the upload dir and place the bundled default logo in it if missing."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        target = self.upload_dir / self.default_filename
        if target.exists():
            return
        shutil.copyfile(source, target)
        logger.info("Installed default logo at %s", target)

    def is_stored(self, uri: str) -> bool:
        name = self._filename_for(uri)
        return name is not None and (self.upload_dir / name).is_file()

    def validate(self, upload: UploadFile) -> None:
        """Check the declared content type before anything is written."""
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if not content_type or content_type == "application/octet-stream":
            content_type = mimetypes.guess_type(upload.filename or "")[0] or ""
        if content_type not in self.allowed_types:
            raise InvalidLogoError(
                f"logo must be one of {', '.join(sorted(self.allowed_types))}"
            )

    async def store(self, upload: UploadFile) -> str:
        """Write an uploaded logo and return the URI it is served from."""
        self.validate(upload)
        data = await upload.read(self.max_bytes + 1)
        if not data:
            raise InvalidLogoError("logo file is empty")
        if len(data) > self.max_bytes:
            raise InvalidLogoError(f"logo exceeds {self.max_bytes} bytes")

        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        extension = _EXTENSIONS.get(content_type) or Path(upload.filename or "").suffix.lower()
        filename = f"{uuid.uuid4().hex}{extension}"

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread((self.upload_dir / filename).write_bytes, data)
        logger.info("Stored logo %s (%d bytes)", filename, len(data))
        return urljoin(self.base_url, filename)

    def delete(self, uri: str) -> None:
        """Remove a stored logo. Default and foreign URIs are left alone."""
        name = self._filename_for(uri)
        if name is None:
            return
        path = self.upload_dir / name
        try:
            path.unlink()
            logger.info("Deleted logo %s", name)
        except FileNotFoundError:
            logger.warning("Logo %s already removed", name)

    async def begin_change(
        self, old_uri: str, upload: Optional[UploadFile] = None, reset: bool = False
    ) -> "LogoChange":
        """
        Start a logo transition for a client.

        With ``upload`` the new file is written now; with ``reset`` the client
        falls back to the default logo. Otherwise the logo is unchanged.
        """
        if upload is not None:
            new_uri = await self.store(upload)
        elif reset:
            new_uri = self.default_uri
        else:
            new_uri = old_uri
        return LogoChange(self, old_uri, new_uri)


class LogoChange:
    """Pending transition from one logo URI to another."""

    def __init__(self, storage: LogoStorage, old_uri: str, new_uri: str):
        self.storage = storage
        self.old_uri = old_uri
        self.new_uri = new_uri

    @property
    def logo_uri(self) -> str:
        return self.new_uri

    @property
    def changed(self) -> bool:
        return self.old_uri != self.new_uri

    def commit(self) -> None:
        """The record now points at the new logo; drop the old file."""
        if self.changed:
            self.storage.delete(self.old_uri)

    def rollback(self) -> None:
        """The record was not updated; drop the file written for it."""
        if self.changed:
            self.storage.delete(self.new_uri)
