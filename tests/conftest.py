import numpy as np
import pytest

from liveness_check.capture import CaptureSession
from liveness_check.errors import TransportError
from liveness_check.lifecycle import LivenessSession


class FakeStream:
    """Stands in for cv2.VideoCapture."""

    def __init__(self, frame=None, ok=True):
        self.frame = np.full((120, 160, 3), 128, dtype=np.uint8) if frame is None else frame
        self.ok = ok
        self.released = False
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.ok:
            return False, None
        return True, self.frame.copy()

    def release(self):
        self.released = True


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def check(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def stream():
    return FakeStream()


@pytest.fixture
def camera(stream):
    return CaptureSession(stream_factory=lambda: stream)


@pytest.fixture
def client():
    return FakeClient(response={"liveness": {"probability": 87}})


@pytest.fixture
def failing_client():
    return FakeClient(error=TransportError("connection refused"))


@pytest.fixture
def make_session(camera):
    def _make(client):
        return LivenessSession(client=client, capture_session=camera)
    return _make


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "face.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-bytes")
    return path
