"""Tests for the EPUB upload endpoint."""

from unittest.mock import AsyncMock

import pytest

from app.config import settings
from app.core.records import ChapterRecordStore
from epub_factory import FILLER, PNG_BYTES, build_chapter, simple_epub

URL = "/api/v1/parse-epub"
ADMIN = {"Authorization": "Bearer admin-token"}
READER = {"Authorization": "Bearer reader-token"}


def _epub():
    chapters = [
        build_chapter(f'<p>{FILLER}</p><img src="../Images/map.png"/>', heading="Landfall"),
        build_chapter("<p>too short</p>"),
        build_chapter(f"<p>{FILLER}</p>", heading="Departure"),
    ]
    return simple_epub(chapters, extra_files={"OEBPS/Images/map.png": PNG_BYTES})


def _files(data=None):
    return {"epub": ("book.epub", _epub() if data is None else data, "application/epub+zip")}


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_missing_token(self, client, novel):
        response = await client.post(URL, files=_files(), data={"novel_id": novel.id})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_token(self, client, novel):
        response = await client.post(
            URL,
            headers={"Authorization": "Bearer nope"},
            files=_files(),
            data={"novel_id": novel.id},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_reader_forbidden(self, client, novel):
        response = await client.post(URL, headers=READER, files=_files(), data={"novel_id": novel.id})
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_api_key_header(self, client, novel):
        response = await client.post(
            URL,
            headers={"X-API-Key": "admin-token"},
            files=_files(),
            data={"novel_id": novel.id},
        )
        assert response.status_code == 200


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_file(self, client, novel):
        response = await client.post(URL, headers=ADMIN, data={"novel_id": novel.id})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing epub file or novel_id"

    @pytest.mark.asyncio
    async def test_missing_novel_id(self, client):
        response = await client.post(URL, headers=ADMIN, files=_files())
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unsupported_language(self, client, novel):
        response = await client.post(
            URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id, "language": "fr"}
        )
        assert response.status_code == 400
        assert "fr" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_too_large(self, client, novel, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_size_mb", 0)
        response = await client.post(URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id})
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_unknown_novel(self, client):
        response = await client.post(URL, headers=ADMIN, files=_files(), data={"novel_id": "missing"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_archive(self, client, novel):
        response = await client.post(
            URL, headers=ADMIN, files=_files(b"this is not a zip"), data={"novel_id": novel.id}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid EPUB file - could not unzip"

    @pytest.mark.asyncio
    async def test_corrupt_archive(self, client, novel):
        data = bytearray(_epub())
        # Flag the first entry as encrypted in the central directory
        data[data.index(b"PK\x01\x02") + 8] |= 0x01
        response = await client.post(
            URL, headers=ADMIN, files=_files(bytes(data)), data={"novel_id": novel.id}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid EPUB file - could not unzip"

    @pytest.mark.asyncio
    async def test_unexpected_failure(self, client, novel, monkeypatch):
        monkeypatch.setattr(
            "app.core.ingestion.extract_epub", AsyncMock(side_effect=RuntimeError("boom"))
        )
        response = await client.post(URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to parse EPUB", "details": "boom"}


class TestIngestion:
    @pytest.mark.asyncio
    async def test_success(self, client, novel, session_maker, storage):
        response = await client.post(
            URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id, "language": "en"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["chapters_count"] == 2
        data = body["data"]
        assert data["title"] == "Test Book"
        assert data["author"] == "Jane Writer"
        assert [c["title"] for c in data["chapters"]] == ["Landfall", "Departure"]
        assert [c["number"] for c in data["chapters"]] == [1, 2]
        assert all(len(c["content_preview"]) <= 203 for c in data["chapters"])

        (image_url,) = data["chapters"][0]["images"]
        assert image_url.startswith(f"http://testserver/storage/novels/images/{novel.id}/")
        assert len(list((storage.bucket_dir / "images" / novel.id).iterdir())) == 1

        async with session_maker() as session:
            stored = await ChapterRecordStore(session).list_chapters(novel.id)
        assert [c.title for c in stored] == ["Landfall", "Departure"]
        assert image_url in stored[0].content_en
        assert "../Images/map.png" not in stored[0].content_en

    @pytest.mark.asyncio
    async def test_default_language_is_english(self, client, novel, session_maker):
        await client.post(URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id})
        await client.post(
            URL, headers=ADMIN, files=_files(), data={"novel_id": novel.id, "language": "id"}
        )

        async with session_maker() as session:
            stored = await ChapterRecordStore(session).list_chapters(novel.id)
        assert len(stored) == 2
        assert all(c.content_en and c.content_id for c in stored)
