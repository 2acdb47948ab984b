# ============================================================
# IMAGE SOURCE ADAPTER
# Turns an uploaded file or a webcam frame into one data URL string
# ("data:<mime>;base64,<payload>"), the only image form the rest of
# the app handles.
# ============================================================

import base64
import io
import logging
import mimetypes
import os
from typing import Tuple

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .config import JPEG_QUALITY
from .errors import CaptureError, FileReadError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:"
BASE64_MARKER = ";base64,"


def to_data_url(data: bytes, mime: str) -> str:
    return f"{DATA_URL_PREFIX}{mime}{BASE64_MARKER}{base64.b64encode(data).decode('utf-8')}"


def decode(encoded: str) -> Tuple[str, bytes]:
    """Split a data URL into (mime, raw bytes).

    A bare base64 string (no data URL prefix) is accepted and reported as
    application/octet-stream.
    """
    mime = "application/octet-stream"
    raw = encoded
    if raw.startswith(DATA_URL_PREFIX) and BASE64_MARKER in raw:
        header, raw = raw.split(BASE64_MARKER, 1)
        mime = header[len(DATA_URL_PREFIX):] or mime
    return mime, base64.b64decode(raw)


def _read_bytes(file) -> bytes:
    if isinstance(file, (str, os.PathLike)):
        with open(file, "rb") as fh:
            return fh.read()
    # streamlit's UploadedFile keeps the whole upload in memory
    if hasattr(file, "getvalue"):
        return file.getvalue()
    return file.read()


def _sniff_mime(data: bytes):
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None


def _guess_mime(file, data: bytes):
    declared = getattr(file, "type", None)
    if declared:
        return declared

    name = os.fspath(file) if isinstance(file, (str, os.PathLike)) else getattr(file, "name", None)
    if name:
        guessed, _ = mimetypes.guess_type(str(name))
        if guessed:
            return guessed

    return _sniff_mime(data)


def from_file(file) -> str:
    """Read a user-selected file completely and return it as a data URL.

    `file` is a path or a file-like upload (anything with `getvalue()` or
    `read()`, optionally `name` and `type`).
    """
    try:
        data = _read_bytes(file)
    except OSError as e:
        raise FileReadError(f"Could not read file: {e}") from e

    if not data:
        raise FileReadError("File is empty")

    mime = _guess_mime(file, data)
    if not mime:
        raise FileReadError("Could not determine the image type of the file")

    logger.debug("Read %d bytes as %s", len(data), mime)
    return to_data_url(data, mime)


def from_video_frame(frame, width: int, height: int, quality: int = JPEG_QUALITY) -> str:
    """Rasterize a BGR video frame to width x height and encode it as a JPEG data URL."""
    if frame is None or not isinstance(frame, np.ndarray) or frame.size == 0:
        raise CaptureError("No frame available")

    try:
        resized = cv2.resize(frame, (int(width), int(height)), interpolation=cv2.INTER_AREA)
        ok, buf = cv2.imencode(".jpg", resized, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    except cv2.error as e:
        raise CaptureError(f"Could not rasterize frame: {e}") from e

    if not ok:
        raise CaptureError("cv2.imencode failed for captured frame")

    return to_data_url(buf.tobytes(), "image/jpeg")
