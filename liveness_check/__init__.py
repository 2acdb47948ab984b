from .errors import (
    CameraAccessError,
    CaptureError,
    FileReadError,
    LivenessCheckError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "CameraAccessError",
    "CaptureError",
    "FileReadError",
    "LivenessCheckError",
    "TransportError",
]
