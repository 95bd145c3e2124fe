"""Tests for logo storage and the logo replacement sequence."""
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from oauth_registry.services.logo_storage import InvalidLogoError, LogoStorage


def make_upload(data: bytes, filename: str = "newClient.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def stored_files(storage: LogoStorage) -> set:
    return {p.name for p in storage.upload_dir.iterdir()}


class TestLogoStorage:
    def test_default_logo_installed(self, logo_storage):
        assert stored_files(logo_storage) == {"default.png"}
        assert logo_storage.default_uri == "http://test/static/client/logo/default.png"

    def test_ensure_default_keeps_existing_file(self, logo_storage):
        target = logo_storage.upload_dir / "default.png"
        target.write_bytes(b"custom")
        logo_storage.ensure_default()
        assert target.read_bytes() == b"custom"

    def test_ensure_default_creates_upload_dir(self, tmp_path):
        storage = LogoStorage(tmp_path / "static" / "logo", "http://test/logo/")
        assert not storage.upload_dir.exists()

        storage.ensure_default()

        assert (storage.upload_dir / "default.png").is_file()

    def test_base_url_gets_trailing_slash(self, tmp_path):
        storage = LogoStorage(tmp_path, "http://test/logo")
        assert storage.default_uri == "http://test/logo/default.png"

    @pytest.mark.asyncio
    async def test_store_writes_file_under_new_name(self, logo_storage, logo_bytes):
        uri = await logo_storage.store(make_upload(logo_bytes))

        assert uri.startswith(logo_storage.base_url)
        assert uri.endswith(".png")
        assert logo_storage.is_stored(uri)
        name = uri[len(logo_storage.base_url):]
        assert name != "newClient.png"
        assert (logo_storage.upload_dir / name).read_bytes() == logo_bytes

    def test_validate_rejects_non_images(self, logo_storage):
        with pytest.raises(InvalidLogoError):
            logo_storage.validate(make_upload(b"hello", "notes.txt", "text/plain"))

    def test_validate_guesses_type_from_filename(self, logo_storage, logo_bytes):
        logo_storage.validate(make_upload(logo_bytes, "logo.png", "application/octet-stream"))

    @pytest.mark.asyncio
    async def test_store_rejects_empty_file(self, logo_storage):
        with pytest.raises(InvalidLogoError):
            await logo_storage.store(make_upload(b""))
        assert stored_files(logo_storage) == {"default.png"}

    @pytest.mark.asyncio
    async def test_store_rejects_oversized_file(self, tmp_path, logo_bytes):
        storage = LogoStorage(tmp_path, "http://test/logo/", max_bytes=len(logo_bytes) - 1)
        with pytest.raises(InvalidLogoError):
            await storage.store(make_upload(logo_bytes))
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_delete_removes_stored_logo(self, logo_storage, logo_bytes):
        uri = await logo_storage.store(make_upload(logo_bytes))
        logo_storage.delete(uri)
        assert not logo_storage.is_stored(uri)
        assert stored_files(logo_storage) == {"default.png"}

    @pytest.mark.parametrize(
        "uri",
        [
            "http://test/static/client/logo/default.png",
            "http://elsewhere.example/logo/default.png",
            "http://test/static/client/logo/../default.png",
            "",
        ],
    )
    def test_delete_leaves_default_and_foreign_uris(self, logo_storage, uri):
        logo_storage.delete(uri)
        assert stored_files(logo_storage) == {"default.png"}

    def test_delete_missing_file_is_quiet(self, logo_storage):
        logo_storage.delete(logo_storage.base_url + "gone.png")


class TestLogoChange:
    @pytest.mark.asyncio
    async def test_commit_drops_old_logo(self, logo_storage, logo_bytes):
        old_uri = await logo_storage.store(make_upload(logo_bytes))
        change = await logo_storage.begin_change(old_uri, upload=make_upload(logo_bytes))

        assert change.changed
        assert logo_storage.is_stored(old_uri)
        assert logo_storage.is_stored(change.logo_uri)

        change.commit()
        assert not logo_storage.is_stored(old_uri)
        assert logo_storage.is_stored(change.logo_uri)

    @pytest.mark.asyncio
    async def test_rollback_drops_new_logo(self, logo_storage, logo_bytes):
        old_uri = await logo_storage.store(make_upload(logo_bytes))
        change = await logo_storage.begin_change(old_uri, upload=make_upload(logo_bytes))

        change.rollback()
        assert logo_storage.is_stored(old_uri)
        assert not logo_storage.is_stored(change.logo_uri)

    @pytest.mark.asyncio
    async def test_reset_falls_back_to_default(self, logo_storage, logo_bytes):
        old_uri = await logo_storage.store(make_upload(logo_bytes))
        change = await logo_storage.begin_change(old_uri, reset=True)

        assert change.logo_uri == logo_storage.default_uri
        change.commit()
        assert stored_files(logo_storage) == {"default.png"}

    @pytest.mark.asyncio
    async def test_no_change_keeps_logo(self, logo_storage):
        change = await logo_storage.begin_change(logo_storage.default_uri)
        assert not change.changed
        change.commit()
        change.rollback()
        assert stored_files(logo_storage) == {"default.png"}
