"""Tests for object reads, writes and deletes through the proxy."""

from s3proxy.dispatch import ALLOWED_METHODS

from .conftest import REAL_BUCKET
from .fakes import client_error


class TestGetObject:
    """GET/HEAD on a single object."""

    def test_missing_object_is_404(self, client):
        response = client.get(f"/{REAL_BUCKET}/missing.txt")
        assert response.status_code == 404
        assert "Not Found" in response.text

    def test_missing_bucket_is_404(self, client):
        response = client.get("/no-such-bucket/file.txt")
        assert response.status_code == 404

    def test_invalid_bucket_name_is_404(self, client):
        response = client.get("/bad%20bucket/file.txt")
        assert response.status_code == 404

    def test_metadata_is_default(self, client, fake_s3):
        fake_s3.add_object(REAL_BUCKET, "docs/readme.txt", b"hello", content_type="text/plain")

        response = client.get(f"/{REAL_BUCKET}/docs/readme.txt")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        data = response.json()
        assert data["bucket"] == REAL_BUCKET
        assert data["name"] == "docs/readme.txt"
        assert data["size"] == 5
        assert data["content_type"] == "text/plain"
        assert data["updated"].startswith("2024-01-02T03:04:05")

    def test_media_streams_body_with_headers(self, client, fake_s3):
        body = b"\x89PNG...."
        fake_s3.add_object(
            REAL_BUCKET,
            "img/logo.png",
            body,
            content_type="image/png",
            CacheControl="max-age=60",
            ContentDisposition='attachment; filename="logo.png"',
        )

        response = client.get(f"/{REAL_BUCKET}/img/logo.png", params={"alt": "media"})

        assert response.status_code == 200
        assert response.content == body
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "max-age=60"
        assert response.headers["content-disposition"] == 'attachment; filename="logo.png"'
        assert response.headers["content-length"] == str(len(body))
        assert response.headers["last-modified"] == "Tue, 02 Jan 2024 03:04:05 GMT"
        assert "content-language" not in response.headers

    def test_head_media_sends_headers_only(self, client, fake_s3):
        fake_s3.add_object(REAL_BUCKET, "a.bin", b"12345", content_type="application/octet-stream")

        response = client.head(f"/{REAL_BUCKET}/a.bin", params={"alt": "media"})

        assert response.status_code == 200
        assert response.headers["content-length"] == "5"
        assert ("GetObject", REAL_BUCKET) not in fake_s3.calls

    def test_backend_failure_is_500(self, client, fake_s3):
        fake_s3.errors[("HeadObject", REAL_BUCKET)] = client_error("AccessDenied", 403, "HeadObject")

        response = client.get(f"/{REAL_BUCKET}/secret.txt")

        assert response.status_code == 500
        assert "AccessDenied" in response.text


class TestWriteObject:
    """PUT/POST upload the whole body."""

    def test_put_then_get_round_trip(self, client):
        body = b"some bytes\x00\xff" * 100

        put = client.put(f"/{REAL_BUCKET}/data/blob.bin", content=body)
        assert put.status_code == 200
        assert put.json() == {"bucket": REAL_BUCKET, "name": "data/blob.bin", "size": len(body)}

        get = client.get(f"/{REAL_BUCKET}/data/blob.bin", params={"alt": "media"})
        assert get.status_code == 200
        assert get.content == body
        assert get.headers["content-length"] == str(len(body))

    def test_post_overwrites(self, client, fake_s3):
        fake_s3.add_object(REAL_BUCKET, "note.txt", b"old")

        response = client.post(
            f"/{REAL_BUCKET}/note.txt",
            content=b"new",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 200
        assert fake_s3.objects[(REAL_BUCKET, "note.txt")]["Body"] == b"new"
        assert fake_s3.objects[(REAL_BUCKET, "note.txt")]["ContentType"] == "text/plain"

    def test_put_to_missing_bucket_is_404(self, client):
        response = client.put("/no-such-bucket/file.txt", content=b"x")
        assert response.status_code == 404

    def test_put_to_bucket_root_not_allowed(self, client):
        response = client.put(f"/{REAL_BUCKET}/", content=b"x")
        assert response.status_code == 405
        assert response.headers["allow"] == "GET, HEAD"


class TestDeleteObject:
    def test_delete_existing(self, client, fake_s3):
        fake_s3.add_object(REAL_BUCKET, "gone.txt", b"bye")

        response = client.delete(f"/{REAL_BUCKET}/gone.txt")

        assert response.status_code == 204
        assert (REAL_BUCKET, "gone.txt") not in fake_s3.objects

    def test_delete_missing_is_404(self, client):
        response = client.delete(f"/{REAL_BUCKET}/never-was.txt")
        assert response.status_code == 404


class TestUnsupportedMethods:
    def test_patch_is_405(self, client, fake_s3):
        fake_s3.add_object(REAL_BUCKET, "file.txt", b"data")

        first = client.patch(f"/{REAL_BUCKET}/file.txt", content=b"x")
        second = client.patch(f"/{REAL_BUCKET}/file.txt", content=b"x")

        assert first.status_code == second.status_code == 405
        assert first.text.strip() == "Method Not Allowed"
        assert first.headers["allow"] == ", ".join(ALLOWED_METHODS)
        assert fake_s3.objects[(REAL_BUCKET, "file.txt")]["Body"] == b"data"

    def test_options_is_405(self, client):
        response = client.options(f"/{REAL_BUCKET}/file.txt")
        assert response.status_code == 405
