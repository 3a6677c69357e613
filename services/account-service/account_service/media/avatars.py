"""Avatar upload staging, normalisation and placement."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from PIL import Image, UnidentifiedImageError

from ..domain.contracts import UploadedFile
from ..domain.errors import ProcessingError

logger = logging.getLogger(__name__)

GRAVATAR_BASE_URL = "http://www.gravatar.com/avatar/"


def gravatar_url(email: str) -> str:
    """Derive the placeholder Gravatar URL for ``email`` without a network call."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"{GRAVATAR_BASE_URL}{digest}"


@contextmanager
def staged_upload(upload: UploadedFile) -> Iterator[UploadedFile]:
    """Scope a spooled upload; whatever is left at the temp path is removed on exit."""
    try:
        yield upload
    finally:
        try:
            upload.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("could not remove staged upload %s: %s", upload.path, exc)


class AvatarStore:
    """Filesystem placement of normalised avatar images."""

    def __init__(
        self,
        avatar_dir: Path | str,
        upload_dir: Path | str,
        *,
        public_prefix: str = "/avatars",
        size: int = 250,
    ) -> None:
        """Remember target directories and make sure they exist."""
        self._avatar_dir = Path(avatar_dir)
        self._upload_dir = Path(upload_dir)
        self._public_prefix = public_prefix.rstrip("/")
        self._size = size
        self._avatar_dir.mkdir(parents=True, exist_ok=True)
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    @property
    def avatar_dir(self) -> Path:
        return self._avatar_dir

    def spool(self, fileobj: BinaryIO, original_filename: str) -> UploadedFile:
        """Copy an incoming upload stream to a temp file in the upload directory."""
        suffix = Path(original_filename).suffix
        fd, name = tempfile.mkstemp(dir=self._upload_dir, suffix=suffix)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as target:
                shutil.copyfileobj(fileobj, target)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return UploadedFile(path=path, original_filename=original_filename)

    def normalize(self, upload: UploadedFile) -> None:
        """Resize the staged image in place to a fixed square."""
        try:
            with Image.open(upload.path) as image:
                image_format = image.format
                resized = image.resize((self._size, self._size))
            resized.save(upload.path, format=image_format)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ProcessingError(f"could not process image: {exc}") from exc

    def place(self, upload: UploadedFile, account_id: str) -> Path:
        """Move the staged file to its stable location and return that path."""
        target = self._avatar_dir / f"{account_id}{Path(upload.original_filename).suffix}"
        shutil.move(str(upload.path), target)
        return target

    def reference_for(self, placed: Path) -> str:
        return f"{self._public_prefix}/{placed.name}"

    def discard(self, placed: Path) -> None:
        placed.unlink(missing_ok=True)

    def prune(self, account_id: str, keep: Path) -> None:
        """Remove earlier avatars of the account stored under another extension."""
        for candidate in self._avatar_dir.iterdir():
            if candidate.stem == account_id and candidate.name != keep.name:
                try:
                    candidate.unlink()
                except OSError as exc:
                    logger.warning("could not remove old avatar %s: %s", candidate, exc)
