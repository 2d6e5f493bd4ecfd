"""Validation helpers for uploaded video content."""

from typing import Optional

from services.errors import InvalidInputError

MAX_VIDEO_BYTES = 100 * 1024 * 1024  # 100MB

INVALID_TYPE_MESSAGE = "Invalid file type. Please upload a video file."
TOO_LARGE_MESSAGE = "File size exceeds 100MB limit."


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lower-case a content type and drop parameters such as `; codecs=...`."""
    return (content_type or "").lower().split(";", 1)[0].strip()


def validate_video_type(content_type: Optional[str]) -> str:
    """Return the normalized MIME type, or raise if it is not a video type."""
    mime_type = normalize_content_type(content_type)
    if not mime_type.startswith("video/"):
        raise InvalidInputError(INVALID_TYPE_MESSAGE)
    return mime_type


def validate_video_size(size: Optional[int]) -> None:
    """Reject sizes over the limit. An unknown size is checked while streaming."""
    if size is not None and size > MAX_VIDEO_BYTES:
        raise InvalidInputError(TOO_LARGE_MESSAGE)


def validate_video(content_type: Optional[str], size: Optional[int]) -> str:
    """Validate type first, then size, matching the order users see errors in."""
    mime_type = validate_video_type(content_type)
    validate_video_size(size)
    return mime_type
