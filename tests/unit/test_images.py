"""Unit tests for image storage and manual compensation."""

import logging

import pytest

from inventory_hub.core.compensation import run_with_compensation
from inventory_hub.core.files.images import ImageValidationError
from inventory_hub.core.files.storage import LocalStorageBackend


@pytest.mark.asyncio
async def test_upload_groups_images_by_inventory_code(image_service):
    """Test that an upload lands under the inventory code and can be read back."""
    url = await image_service.upload_image(b"\x89PNG", "Photo.PNG", 1001)

    assert url.startswith("/images/routes/1001/")
    assert url.endswith(".png")
    assert await image_service.read_image(url) == b"\x89PNG"


@pytest.mark.asyncio
@pytest.mark.parametrize("file_name", ["notes.txt", "archive.gif", "noextension"])
async def test_disallowed_extension_is_rejected(image_service, file_name):
    with pytest.raises(ImageValidationError):
        await image_service.upload_image(b"data", file_name, 1001)


@pytest.mark.asyncio
async def test_oversized_and_empty_images_are_rejected(image_service):
    """Test the size limit and the empty-content check."""
    with pytest.raises(ImageValidationError, match="1MB"):
        await image_service.upload_image(b"x" * (1024 * 1024 + 1), "big.jpg", 1001)
    with pytest.raises(ImageValidationError):
        await image_service.upload_image(b"", "empty.jpg", 1001)


@pytest.mark.asyncio
async def test_delete_uses_last_two_url_segments(image_service):
    """Test that deletion resolves the file from the URL's last two segments."""
    url = await image_service.upload_image(b"\xff\xd8\xff", "photo.jpg", 7)
    foreign_prefix = "https://cdn.example.com/static/" + "/".join(url.split("/")[-2:])

    assert await image_service.delete_image(foreign_prefix) is True
    assert await image_service.delete_image(url) is False


@pytest.mark.asyncio
async def test_delete_ignores_missing_and_malformed_urls(image_service):
    assert await image_service.delete_image(None) is False
    assert await image_service.delete_image("") is False
    assert await image_service.delete_image("single-segment") is False


@pytest.mark.asyncio
async def test_compensation_runs_on_failure_and_error_propagates():
    """Test that the original error is re-raised after compensating."""
    calls: list[str] = []

    async def operation():
        calls.append("operation")
        raise ValueError("save failed")

    async def compensate():
        calls.append("compensate")

    with pytest.raises(ValueError, match="save failed"):
        await run_with_compensation(operation, compensate, operation_name="Saving route")

    assert calls == ["operation", "compensate"]


@pytest.mark.asyncio
async def test_compensation_not_run_on_success():
    async def operation():
        return 42

    async def compensate():
        raise AssertionError("must not compensate")

    assert await run_with_compensation(operation, compensate) == 42


@pytest.mark.asyncio
async def test_failed_compensation_is_logged_not_raised(caplog):
    """Test that a failing compensation does not mask the original error."""
    caplog.set_level(logging.ERROR)

    async def operation():
        raise ValueError("publish failed")

    async def compensate():
        raise OSError("storage offline")

    with pytest.raises(ValueError, match="publish failed"):
        await run_with_compensation(operation, compensate, operation_name="Creating product 1001")

    assert any("Compensation for Creating product 1001 failed" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_local_storage_round_trip_and_missing_files(tmp_path):
    """Test that a deleted image is gone and a second delete reports nothing removed."""
    storage = LocalStorageBackend(str(tmp_path / "store"), "/images/products/")

    await storage.upload(b"\x89PNG", "1001/a.png")

    assert storage.get_url("1001/a.png") == "/images/products/1001/a.png"
    assert await storage.download("1001/a.png") == b"\x89PNG"
    assert await storage.delete("1001/a.png") is True
    assert await storage.delete("1001/a.png") is False
    with pytest.raises(FileNotFoundError):
        await storage.download("1001/a.png")
