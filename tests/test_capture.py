import cv2
import numpy as np
import pytest

from liveness_check import capture
from liveness_check.capture import CaptureSession, CaptureState, SnapshotStream
from liveness_check.errors import CameraAccessError, CaptureError
from liveness_check.image_source import decode

from .conftest import FakeStream


def test_activate_opens_stream_and_fires_hook(stream):
    seen = []
    session = CaptureSession(stream_factory=lambda: stream, on_active=lambda: seen.append(True))

    assert session.activate() is True
    assert session.state is CaptureState.ACTIVE
    assert session.active
    assert seen == [True]


def test_activate_twice_opens_one_stream():
    opened = []

    def factory():
        opened.append(FakeStream())
        return opened[-1]

    session = CaptureSession(stream_factory=factory)
    session.activate()
    session.activate()

    assert len(opened) == 1


def test_permission_denied_returns_to_closed():
    def factory():
        raise CameraAccessError("permission denied")

    session = CaptureSession(stream_factory=factory)

    assert session.activate() is False
    assert session.state is CaptureState.CLOSED
    assert isinstance(session.last_error, CameraAccessError)


def test_device_error_is_reported_as_camera_access_error():
    def factory():
        raise RuntimeError("device busy")

    session = CaptureSession(stream_factory=factory)

    assert session.activate() is False
    assert isinstance(session.last_error, CameraAccessError)
    assert "device busy" in str(session.last_error)


def test_capture_returns_jpeg_and_releases_camera(camera, stream):
    camera.activate()

    encoded = camera.capture(64, 48)

    mime, data = decode(encoded)
    assert mime == "image/jpeg"
    assert data
    assert stream.released
    assert camera.state is CaptureState.CLOSED
    assert camera.last_error is None


def test_capture_without_session_is_capture_error(camera, stream):
    assert camera.capture(64, 48) is None
    assert isinstance(camera.last_error, CaptureError)
    assert camera.state is CaptureState.CLOSED
    assert stream.reads == 0


def test_capture_without_frame_closes_session():
    stream = FakeStream(ok=False)
    session = CaptureSession(stream_factory=lambda: stream)
    session.activate()

    assert session.capture(64, 48) is None
    assert isinstance(session.last_error, CaptureError)
    assert stream.released
    assert session.state is CaptureState.CLOSED


def test_close_releases_before_marking_closed(stream):
    session = CaptureSession(stream_factory=lambda: stream)
    states_at_release = []
    original_release = stream.release

    def release():
        states_at_release.append(session.state)
        original_release()

    stream.release = release
    session.activate()
    session.close()
    session.close()

    assert states_at_release == [CaptureState.ACTIVE]
    assert session.state is CaptureState.CLOSED


def test_context_manager_closes(stream):
    with CaptureSession(stream_factory=lambda: stream) as session:
        session.activate()
    assert stream.released
    assert session.state is CaptureState.CLOSED


def test_preview_is_rgb(stream):
    stream.frame = np.zeros((10, 10, 3), dtype=np.uint8)
    stream.frame[..., 0] = 255  # blue in BGR
    session = CaptureSession(stream_factory=lambda: stream)

    assert session.preview() is None
    session.activate()
    frame = session.preview()

    assert frame[0, 0].tolist() == [0, 0, 255]


def test_open_camera_releases_unopened_device(monkeypatch):
    class Unopened:
        released = False

        def __init__(self, index):
            self.index = index

        def isOpened(self):
            return False

        def release(self):
            Unopened.released = True

    monkeypatch.setattr(capture.cv2, "VideoCapture", Unopened)

    with pytest.raises(CameraAccessError):
        capture.open_camera(3)
    assert Unopened.released


def _jpeg_bytes(width=80, height=60):
    ok, buf = cv2.imencode(".jpg", np.full((height, width, 3), 200, dtype=np.uint8))
    assert ok
    return buf.tobytes()


class Shot:
    def __init__(self, data):
        self._data = data

    def getvalue(self):
        return self._data


def test_browser_snapshot_is_captured_and_widget_released():
    shots = {"photo": None}
    released = []
    session = CaptureSession(
        stream_factory=lambda: SnapshotStream(lambda: shots["photo"], on_release=lambda: released.append(True))
    )
    session.activate()
    shots["photo"] = Shot(_jpeg_bytes())

    encoded = session.capture(64, 48)

    mime, data = decode(encoded)
    img = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
    assert mime == "image/jpeg"
    assert img.shape == (48, 64, 3)
    assert released == [True]
    assert session.state is CaptureState.CLOSED


def test_browser_capture_before_any_photo_fails():
    released = []
    session = CaptureSession(stream_factory=lambda: SnapshotStream(lambda: None, on_release=lambda: released.append(True)))
    session.activate()

    assert session.capture(64, 48) is None
    assert isinstance(session.last_error, CaptureError)
    assert released == [True]
    assert session.state is CaptureState.CLOSED


def test_snapshot_stream_stops_reading_after_release():
    released = []
    stream = SnapshotStream(lambda: _jpeg_bytes(), on_release=lambda: released.append(True))

    ok, frame = stream.read()
    assert ok and frame.shape == (60, 80, 3)

    stream.release()
    stream.release()

    assert stream.read() == (False, None)
    assert released == [True]


def test_snapshot_stream_rejects_undecodable_bytes():
    ok, frame = SnapshotStream(lambda: b"not a jpeg").read()
    assert not ok
    assert frame is None
