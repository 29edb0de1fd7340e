import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import pytest

from app.core.config import settings
from utils import constants as c

from tests.conftest import auth_headers


@pytest.fixture
def cloudinary_env(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")


@pytest.fixture
def uploads(monkeypatch, cloudinary_env):
    calls = []

    def fake_upload(file, **options):
        calls.append({"body": file.read(), **options})
        return {"secure_url": f"https://res.cloudinary.com/demo/image/upload/{len(calls)}.jpg"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return calls


def test_single_upload_goes_to_folder(client, make_user, uploads):
    admin = make_user(c.ROLE_ADMIN)

    response = client.post(
        "/api/products/upload-image",
        files={"image": ("daal.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["imageUrl"] == "https://res.cloudinary.com/demo/image/upload/1.jpg"
    assert uploads[0]["body"] == b"jpeg-bytes"
    assert uploads[0]["folder"] == settings.CLOUDINARY_FOLDER
    assert uploads[0]["transformation"][0] == {"width": 800, "height": 800, "crop": "limit"}


def test_multiple_uploads(client, make_user, uploads):
    admin = make_user(c.ROLE_ADMIN)

    response = client.post(
        "/api/products/upload-images",
        files=[
            ("images", ("a.png", b"a", "image/png")),
            ("images", ("b.webp", b"b", "image/webp")),
        ],
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert len(response.json()["imageUrls"]) == 2
    assert len(uploads) == 2


def test_non_image_rejected(client, make_user, uploads):
    admin = make_user(c.ROLE_ADMIN)

    response = client.post(
        "/api/products/upload-image",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Only image files are allowed!"
    assert uploads == []


def test_upload_failure_is_reported(client, make_user, monkeypatch, cloudinary_env):
    admin = make_user(c.ROLE_ADMIN)

    def failing_upload(file, **options):
        raise cloudinary.exceptions.Error("Invalid Signature")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)

    response = client.post(
        "/api/products/upload-image",
        files={"image": ("daal.jpg", b"x", "image/jpeg")},
        headers=auth_headers(admin),
    )

    assert response.status_code >= 500
    assert "Invalid Signature" in response.json()["error"]


def test_cloudinary_diagnostics(client, make_user, monkeypatch, cloudinary_env):
    admin = make_user(c.ROLE_ADMIN)
    monkeypatch.setattr(cloudinary.api, "ping", lambda: {"status": "ok"})

    body = client.get("/api/products/test-cloudinary", headers=auth_headers(admin)).json()

    assert body["configuration"]["api_key"] == "✓ Set"
    assert body["ping"]["success"] is True
    assert body["message"] == "Cloudinary is configured and working!"
