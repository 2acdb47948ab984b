# ============================================================
# CAPTURE SESSION CONTROLLER
# Owns the webcam handle: open -> preview -> capture/cancel -> release.
# Nothing outside this module reads from or releases the stream.
# ============================================================

import enum
import logging
from typing import Callable, Optional

import cv2
import numpy as np

from .config import CAMERA_INDEX, CAPTURE_HEIGHT, CAPTURE_WIDTH
from .errors import CameraAccessError, CaptureError
from .image_source import from_video_frame

logger = logging.getLogger(__name__)


class CaptureState(enum.Enum):
    CLOSED = "closed"
    REQUESTING_PERMISSION = "requesting_permission"
    ACTIVE = "active"


def open_camera(index: int = CAMERA_INDEX):
    """Default stream factory: an OpenCV capture on device `index`."""
    cap = cv2.VideoCapture(index)
    if not cap.isOpened():
        cap.release()
        raise CameraAccessError(f"Camera {index} could not be opened")
    return cap


class SnapshotStream:
    """Stream over the user's browser camera.

    `snapshot` returns the latest photo taken in the browser (raw bytes or
    an upload object with `getvalue()`), or None before the first shot.
    `on_release` tears the browser widget down, which stops the camera on
    the user's side.
    """

    def __init__(self, snapshot: Callable, on_release: Optional[Callable[[], None]] = None):
        self._snapshot = snapshot
        self._on_release = on_release
        self.released = False

    def read(self):
        if self.released:
            return False, None
        shot = self._snapshot()
        if shot is None:
            return False, None
        data = shot.getvalue() if hasattr(shot, "getvalue") else shot
        if not data:
            return False, None
        frame = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
        return frame is not None, frame

    def release(self):
        if self.released:
            return
        self.released = True
        if self._on_release is not None:
            self._on_release()


class CaptureSession:
    """At most one open camera stream, released on every way back to CLOSED.

    `stream_factory` returns an object with `read() -> (ok, frame)` and
    `release()`, which is what cv2.VideoCapture provides.
    """

    def __init__(
        self,
        stream_factory: Callable = open_camera,
        on_active: Optional[Callable[[], None]] = None,
    ):
        self._stream_factory = stream_factory
        self._on_active = on_active
        self._stream = None
        self.state = CaptureState.CLOSED
        self.last_error: Optional[Exception] = None

    @property
    def active(self) -> bool:
        return self.state is CaptureState.ACTIVE

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def activate(self) -> bool:
        if self.active:
            return True

        self.last_error = None
        self.state = CaptureState.REQUESTING_PERMISSION
        try:
            stream = self._stream_factory()
        except CameraAccessError as e:
            self._fail_activation(e)
            return False
        except Exception as e:
            self._fail_activation(CameraAccessError(str(e)))
            return False

        self._stream = stream
        self.state = CaptureState.ACTIVE
        logger.info("Camera session active")

        if self._on_active is not None:
            try:
                self._on_active()
            except Exception:
                logger.exception("on_active hook failed")
        return True

    def _fail_activation(self, error: CameraAccessError) -> None:
        logger.warning("Camera access failed: %s", error)
        self.last_error = error
        self.state = CaptureState.CLOSED

    def _read_frame(self):
        ok, frame = self._stream.read()
        if not ok or frame is None:
            return None
        return frame

    def preview(self):
        """Current frame as RGB for the preview surface, or None."""
        if not self.active:
            return None
        try:
            frame = self._read_frame()
        except Exception:
            logger.exception("Preview read failed")
            return None
        if frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def capture(self, width: int = CAPTURE_WIDTH, height: int = CAPTURE_HEIGHT) -> Optional[str]:
        """Snapshot the current frame as a JPEG data URL and close the session.

        Returns None on failure; the error is kept in `last_error` and the
        session ends up CLOSED either way.
        """
        if not self.active:
            self.last_error = CaptureError("Capture requested without an active camera session")
            logger.warning("%s", self.last_error)
            return None

        try:
            encoded = from_video_frame(self._read_frame(), width, height)
        except CaptureError as e:
            logger.warning("Capture failed: %s", e)
            self.last_error = e
            self.close()
            return None
        except Exception as e:
            logger.exception("Capture failed")
            self.last_error = CaptureError(str(e))
            self.close()
            return None

        self.last_error = None
        self.close()
        logger.info("Captured %dx%d frame", width, height)
        return encoded

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.release()
            except Exception:
                logger.exception("Failed to release camera stream")
            logger.info("Camera session closed")
        self.state = CaptureState.CLOSED
