# ============================================================
# ENV / CONFIG
# - Everything is read from environment variables
# - Safe defaults so the UI still starts without a configured API
# ============================================================

import logging
import os


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


def _float_env(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


# remote liveness API
LIVENESS_API_URL = os.getenv("LIVENESS_API_URL", "")
LIVENESS_APP_ID = os.getenv("LIVENESS_APP_ID", "")
LIVENESS_API_KEY = os.getenv("LIVENESS_API_KEY", "")
LIVENESS_TIMEOUT = _float_env("LIVENESS_TIMEOUT", 30.0)

# webcam capture
CAMERA_INDEX = _int_env("CAMERA_INDEX", 0)
CAPTURE_WIDTH = _int_env("CAPTURE_WIDTH", 640)
CAPTURE_HEIGHT = _int_env("CAPTURE_HEIGHT", 480)
# "browser": the user's camera through the page; "device": an OpenCV device on this host
CAMERA_SOURCE = os.getenv("CAMERA_SOURCE", "browser").lower()

# image encode quality
JPEG_QUALITY = _int_env("JPEG_QUALITY", 85)

# launcher
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _int_env("PORT", 8501)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def missing_api_settings() -> list:
    """Names of the API settings that are still empty."""
    settings = {
        "LIVENESS_API_URL": LIVENESS_API_URL,
        "LIVENESS_APP_ID": LIVENESS_APP_ID,
        "LIVENESS_API_KEY": LIVENESS_API_KEY,
    }
    return [name for name, value in settings.items() if not value]
