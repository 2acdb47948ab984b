class LivenessCheckError(Exception):
    """Base class for errors handled inside the liveness front-end."""


class FileReadError(LivenessCheckError):
    """Uploaded file could not be read or its image type is unknown."""


class CameraAccessError(LivenessCheckError):
    """Camera permission denied or device unavailable."""


class CaptureError(LivenessCheckError):
    """No usable frame at capture time."""


class TransportError(LivenessCheckError):
    """Liveness API call failed or returned something that is not JSON."""
