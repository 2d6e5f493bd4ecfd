"""Disk storage for videos owned by a generation session.

Uploads are streamed into the upload directory in chunks and aborted as
soon as they exceed the size limit. A stored video stays on disk until the
owning session releases it.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from models.session_models import VideoRef
from services.errors import InvalidInputError
from utils.media_validation import MAX_VIDEO_BYTES, TOO_LARGE_MESSAGE, validate_video

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


async def iter_upload(upload: UploadFile, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


class VideoStore:
    """Save, read, and release selected videos under `upload_dir`."""

    def __init__(self, upload_dir: Path, max_bytes: int = MAX_VIDEO_BYTES) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def save_upload(self, upload: UploadFile) -> VideoRef:
        """Validate and stream an upload to disk.

        Raises:
            InvalidInputError: If the type is not video or the body exceeds the limit.
        """
        mime_type = validate_video(upload.content_type, getattr(upload, "size", None))
        return await self.save_stream(upload.filename or "video", mime_type, iter_upload(upload))

    async def save_stream(self, filename: str, mime_type: str, chunks: AsyncIterator[bytes]) -> VideoRef:
        path = self.upload_dir / f"{uuid.uuid4().hex}{Path(filename).suffix.lower()}"
        written = 0
        try:
            async with aiofiles.open(path, "wb") as f:
                async for chunk in chunks:
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise InvalidInputError(TOO_LARGE_MESSAGE)
                    await f.write(chunk)
        except BaseException:
            await self._remove(path)
            raise

        LOGGER.info("Stored video %s (%d bytes, %s)", filename, written, mime_type)
        return VideoRef(filename=filename, mime_type=mime_type, size=written, path=path)

    async def read(self, video: VideoRef) -> bytes:
        async with aiofiles.open(video.path, "rb") as f:
            return await f.read()

    async def release(self, video: Optional[VideoRef]) -> None:
        """Delete the stored file for `video`; missing files are ignored."""
        if video is not None:
            await self._remove(video.path)

    async def _remove(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
