"""Disk access for staged attachments.

An upload touches the disk three times: staged by the upload route, read once
by the aggregator, removed when the request ends. All of it runs in worker
threads, at most ``MODELCOMPARE_FILE_IO_LIMIT`` at a time, so a burst of large
uploads cannot starve the default executor the SDK clients also use.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO, ParamSpec, TypeVar

_P = ParamSpec("_P")
_T = TypeVar("_T")

STAGING_PREFIX = "upload-"

_FILE_IO_SLOTS = asyncio.Semaphore(int(os.getenv("MODELCOMPARE_FILE_IO_LIMIT", "8")))


async def run_file_io(func: Callable[_P, _T], /, *args: _P.args, **kwargs: _P.kwargs) -> _T:
    async with _FILE_IO_SLOTS:
        return await asyncio.to_thread(func, *args, **kwargs)


def _create_staging_file(upload_dir: str) -> tuple[BinaryIO, Path]:
    os.makedirs(upload_dir, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="wb", dir=upload_dir, prefix=STAGING_PREFIX, delete=False
    )
    return handle, Path(handle.name)


async def open_staging_file(upload_dir: str) -> tuple[BinaryIO, Path]:
    """Create an empty file in ``upload_dir``; the caller owns deleting it."""
    return await run_file_io(_create_staging_file, upload_dir)


async def read_file(path: Path) -> bytes:
    return await run_file_io(path.read_bytes)


async def remove_file(path: Path) -> None:
    """Delete ``path``; a file that is already gone is fine."""
    await run_file_io(path.unlink, missing_ok=True)
