from __future__ import annotations

import hashlib
import io

import pytest
from PIL import Image

from account_service.domain.contracts import UploadedFile
from account_service.domain.errors import ProcessingError
from account_service.media.avatars import gravatar_url, staged_upload


def test_gravatar_url_is_derived_from_normalised_email():
    digest = hashlib.md5(b"user@example.com").hexdigest()
    assert gravatar_url(" User@Example.com ") == f"http://www.gravatar.com/avatar/{digest}"


def test_spool_keeps_extension(avatar_store, png_bytes):
    upload = avatar_store.spool(io.BytesIO(png_bytes), "portrait.png")

    assert upload.path.suffix == ".png"
    assert upload.path.read_bytes() == png_bytes
    assert upload.original_filename == "portrait.png"


def test_normalize_and_place(avatar_store, png_bytes):
    upload = avatar_store.spool(io.BytesIO(png_bytes), "portrait.png")

    avatar_store.normalize(upload)
    placed = avatar_store.place(upload, "account-1")

    assert placed == avatar_store.avatar_dir / "account-1.png"
    assert avatar_store.reference_for(placed) == "/avatars/account-1.png"
    assert not upload.path.exists()
    with Image.open(avatar_store.avatar_dir / "account-1.png") as image:
        assert image.size == (250, 250)


def test_normalize_rejects_non_images(avatar_store):
    upload = avatar_store.spool(io.BytesIO(b"plain text"), "notes.png")
    with pytest.raises(ProcessingError):
        avatar_store.normalize(upload)


def test_staged_upload_removes_temp_file_on_error(tmp_path):
    path = tmp_path / "upload.tmp"
    path.write_bytes(b"data")

    with pytest.raises(RuntimeError):
        with staged_upload(UploadedFile(path=path, original_filename="a.png")):
            raise RuntimeError("boom")

    assert not path.exists()


def test_staged_upload_tolerates_relocated_file(tmp_path):
    path = tmp_path / "upload.tmp"
    path.write_bytes(b"data")

    with staged_upload(UploadedFile(path=path, original_filename="a.png")) as staged:
        staged.path.rename(tmp_path / "moved.png")

    assert (tmp_path / "moved.png").exists()


def test_prune_removes_avatars_with_other_extensions(avatar_store):
    old = avatar_store.avatar_dir / "account-1.jpg"
    other_account = avatar_store.avatar_dir / "account-2.jpg"
    current = avatar_store.avatar_dir / "account-1.png"
    for path in (old, other_account, current):
        path.write_bytes(b"img")

    avatar_store.prune("account-1", keep=current)

    assert not old.exists()
    assert current.exists()
    assert other_account.exists()
