"""Tests for the image store and the public image route."""
import pytest
from httpx import AsyncClient

from workboard.config import settings
from workboard.services import file_storage
from workboard.services.file_storage import StorageError


def test_store_and_find_image():
    file_id = file_storage.store_image(b"GIF89a....", "logo.gif", "image/gif")

    assert file_id.startswith("img_")
    path = file_storage.find_image(file_id)
    assert path is not None and path.endswith(".gif")

    assert file_storage.delete_image(file_id) is True
    assert file_storage.find_image(file_id) is None
    assert file_storage.delete_image(file_id) is False


def test_store_image_guesses_type_from_filename():
    file_id = file_storage.store_image(b"<svg/>", "icon.svg", "application/octet-stream")
    assert file_storage.find_image(file_id).endswith(".svg")


def test_store_image_rejections():
    with pytest.raises(StorageError) as exc:
        file_storage.store_image(b"%PDF", "doc.pdf", "application/pdf")
    assert exc.value.message == "File type not allowed."

    with pytest.raises(StorageError) as exc:
        file_storage.store_image(b"\x00" * (1024 * 1024 + 1), "big.png", "image/png")
    assert exc.value.message == "Workspace icon must be 1MB or smaller"


def test_find_image_rejects_path_tricks():
    assert file_storage.find_image("../../etc/passwd") is None
    assert file_storage.find_image("img_zz") is None


def test_image_url():
    url = file_storage.image_url("img_0123456789ab")
    assert url == f"{settings.app_url}/api/storage/images/img_0123456789ab"


@pytest.mark.asyncio
async def test_image_route_is_public(client: AsyncClient):
    file_id = file_storage.store_image(b"\x89PNG\r\n\x1a\n", "a.png", "image/png")

    response = await client.get(f"/api/storage/images/{file_id}")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_svg_is_served_sandboxed(client: AsyncClient):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(document.cookie)</script></svg>'
    file_id = file_storage.store_image(svg, "icon.svg", "image/svg+xml")

    response = await client.get(f"/api/storage/images/{file_id}")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    csp = response.headers["content-security-policy"]
    assert "default-src 'none'" in csp
    assert "sandbox" in csp
    assert response.headers["x-content-type-options"] == "nosniff"


@pytest.mark.asyncio
async def test_image_route_missing(client: AsyncClient):
    response = await client.get("/api/storage/images/img_000000000000")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_endpoint(client: AsyncClient):
    """Health check needs no credentials."""
    response = await client.get("/api/status")
    assert response.status_code == 200
    data = response.json()
    assert data["redisConnected"] is False
    assert "version" in data
