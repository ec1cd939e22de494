"""Unit tests for multipart upload staging."""

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from modelcompare.api.uploads import stage_upload
from modelcompare.shared.exceptions import FileTooLargeError, UnsupportedFileTypeError


def _upload(data: bytes, content_type: str, filename: str = "pixel.png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestStageUpload:
    """Test staging uploads to the upload directory."""

    @pytest.mark.asyncio
    async def test_stages_image(self, test_settings, upload_dir, png_bytes):
        attachment = await stage_upload(_upload(png_bytes, "image/png"), test_settings)

        assert attachment.path.parent == upload_dir
        assert attachment.path.name.startswith("upload-")
        assert attachment.path.read_bytes() == png_bytes
        assert attachment.media_type == "image/png"
        assert attachment.filename == "pixel.png"
        assert attachment.size_bytes == len(png_bytes)

    @pytest.mark.asyncio
    async def test_rejects_non_image(self, test_settings, upload_dir):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            await stage_upload(_upload(b"%PDF", "application/pdf", "doc.pdf"), test_settings)

        assert exc_info.value.message == (
            "Invalid image format. Supported formats are: JPEG, PNG, GIF, and WebP"
        )
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_rejects_oversized_file_and_cleans_up(self, test_settings, upload_dir):
        settings = test_settings.model_copy(update={"upload_max_bytes": 1024})

        with pytest.raises(FileTooLargeError):
            await stage_upload(_upload(b"\x00" * 2048, "image/jpeg", "big.jpg"), settings)

        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_file_at_limit_is_accepted(self, test_settings):
        settings = test_settings.model_copy(update={"upload_max_bytes": 1024})

        attachment = await stage_upload(_upload(b"\x00" * 1024, "image/webp", "a.webp"), settings)

        assert attachment.size_bytes == 1024
