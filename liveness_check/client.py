# ============================================================
# External API: liveness check
# ============================================================

import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from . import config
from .errors import TransportError

logger = logging.getLogger(__name__)


class LivenessRequest(BaseModel):
    is_quality: bool
    is_attribute: bool
    validate_quality: bool
    validate_attribute: bool
    validate_nface: bool
    image: str


class LivenessClient:
    """Single-shot POST to the liveness endpoint.

    Returns the decoded JSON body whatever the HTTP status, so error bodies
    from the API are shown to the user as they are. Anything that is not a
    JSON answer raises TransportError.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        app_id: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.url = config.LIVENESS_API_URL if url is None else url
        self.app_id = config.LIVENESS_APP_ID if app_id is None else app_id
        self.api_key = config.LIVENESS_API_KEY if api_key is None else api_key
        self.timeout = config.LIVENESS_TIMEOUT if timeout is None else timeout

    def headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "App-ID": self.app_id,
            "API-Key": self.api_key,
            "content-type": "application/json",
        }

    def check(self, payload: Dict[str, Any]) -> Any:
        if not self.url:
            logger.warning("LIVENESS_API_URL is not configured")
            raise TransportError("Liveness API URL is not configured")

        try:
            resp = requests.post(self.url, headers=self.headers(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.exception("Liveness request failed: %s", e)
            raise TransportError(str(e)) from e

        logger.debug("Liveness API status: %s", resp.status_code)
        if resp.status_code >= 400:
            logger.warning("Liveness API returned %s: %s", resp.status_code, resp.text[:500])

        try:
            return resp.json()
        except ValueError as e:
            logger.error("Liveness API response was not valid JSON")
            raise TransportError("Response body is not JSON") from e
