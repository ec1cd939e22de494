"""Staging of multipart image uploads to temporary files.

The staged file belongs to the request: ``ChatAggregator.handle`` deletes it
when the request cycle ends. Files that fail validation here are removed
before the error propagates.
"""

from fastapi import UploadFile

from modelcompare.config import ALLOWED_IMAGE_TYPES, Settings
from modelcompare.domain.chat.types import Attachment
from modelcompare.shared.exceptions import FileTooLargeError, UnsupportedFileTypeError
from modelcompare.shared.files import open_staging_file, remove_file, run_file_io
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


async def stage_upload(upload: UploadFile, settings: Settings) -> Attachment:
    """Validate an uploaded image and copy it to a temp file.

    Raises:
        UnsupportedFileTypeError: Content type is not an allowed image type.
        FileTooLargeError: Upload exceeds ``UPLOAD_MAX_BYTES``.
    """
    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedFileTypeError(upload.content_type, list(ALLOWED_IMAGE_TYPES))

    handle, path = await open_staging_file(settings.upload_dir)
    size = 0
    try:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > settings.upload_max_bytes:
                raise FileTooLargeError(settings.upload_max_bytes)
            await run_file_io(handle.write, chunk)
    except BaseException:
        await run_file_io(handle.close)
        await remove_file(path)
        raise
    await run_file_io(handle.close)

    logger.debug(
        "upload_staged",
        filename=upload.filename,
        media_type=upload.content_type,
        size_bytes=size,
    )
    return Attachment(
        path=path,
        media_type=upload.content_type,
        filename=upload.filename,
        size_bytes=size,
    )
