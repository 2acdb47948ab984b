# ============================================================
# LIVENESS REQUEST LIFE CYCLE
# Idle -> ImageReady -> Requesting -> Completed | Failed -> (reset) Idle
# ============================================================

import enum
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Optional, Union

from . import image_source
from .capture import CaptureSession
from .client import LivenessClient, LivenessRequest
from .config import CAPTURE_HEIGHT, CAPTURE_WIDTH
from .errors import FileReadError, TransportError

logger = logging.getLogger(__name__)

PROBABILITY_NOT_AVAILABLE = "N/A"
TRANSPORT_ERROR_MESSAGE = "Error occurred during the API request."


class Phase(enum.Enum):
    IDLE = "idle"
    IMAGE_READY = "image_ready"
    REQUESTING = "requesting"
    COMPLETED = "completed"
    FAILED = "failed"


class Event(enum.Enum):
    IMAGE_SUPPLIED = "image_supplied"
    SUBMIT = "submit"
    RESPONSE_OK = "response_ok"
    RESPONSE_FAILED = "response_failed"
    RESET = "reset"


TERMINAL_PHASES = (Phase.COMPLETED, Phase.FAILED)
RESET_ON_NEW_IMAGE = (Phase.REQUESTING,) + TERMINAL_PHASES

_TRANSITIONS = {
    (Phase.IDLE, Event.IMAGE_SUPPLIED): Phase.IMAGE_READY,
    (Phase.IMAGE_READY, Event.IMAGE_SUPPLIED): Phase.IMAGE_READY,
    (Phase.IMAGE_READY, Event.SUBMIT): Phase.REQUESTING,
    (Phase.REQUESTING, Event.RESPONSE_OK): Phase.COMPLETED,
    (Phase.REQUESTING, Event.RESPONSE_FAILED): Phase.FAILED,
}


def transition(phase: Phase, event: Event) -> Phase:
    """Next phase for `event`. Events a phase does not accept leave it unchanged."""
    if event is Event.RESET:
        return Phase.IDLE
    return _TRANSITIONS.get((phase, event), phase)


@dataclass
class RequestConfig:
    use_quality: bool = True
    use_attribute: bool = True
    validate_quality: bool = True
    validate_attribute: bool = True
    validate_nface: bool = True

    @classmethod
    def flag_names(cls):
        return [f.name for f in fields(cls)]


@dataclass
class SessionState:
    config: RequestConfig = field(default_factory=RequestConfig)
    image: Optional[str] = None
    phase: Phase = Phase.IDLE
    response: Any = None
    probability: Union[int, float, str] = PROBABILITY_NOT_AVAILABLE
    error: Optional[str] = None

    @property
    def trigger_disabled(self) -> bool:
        return self.phase is not Phase.IMAGE_READY or self.image is None


def build_payload(config: RequestConfig, image: str) -> Dict[str, Any]:
    return LivenessRequest(
        is_quality=config.use_quality,
        is_attribute=config.use_attribute,
        validate_quality=config.validate_quality,
        validate_attribute=config.validate_attribute,
        validate_nface=config.validate_nface,
        image=image,
    ).model_dump()


def extract_probability(data: Any) -> Union[int, float, str]:
    """liveness.probability when present and numeric, otherwise "N/A"."""
    if not isinstance(data, dict):
        return PROBABILITY_NOT_AVAILABLE
    liveness = data.get("liveness")
    if not isinstance(liveness, dict):
        return PROBABILITY_NOT_AVAILABLE
    probability = liveness.get("probability")
    if isinstance(probability, bool) or not isinstance(probability, (int, float)):
        return PROBABILITY_NOT_AVAILABLE
    return probability


class LivenessSession:
    """Owns the SessionState, the API client and the camera session.

    Every UI event goes through one of the methods here; none of them
    raise, failures end up in the state or the log.
    """

    def __init__(
        self,
        client: Optional[LivenessClient] = None,
        capture_session: Optional[CaptureSession] = None,
        capture_factory: Optional[Callable[[], CaptureSession]] = None,
    ):
        self.client = client or LivenessClient()
        self.camera = capture_session or (capture_factory or CaptureSession)()
        self.state = SessionState()
        self.generation = 0

    @property
    def config(self) -> RequestConfig:
        return self.state.config

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def _apply(self, event: Event) -> None:
        previous = self.state.phase
        self.state.phase = transition(previous, event)
        if self.state.phase is not previous:
            logger.info("Liveness session %s -> %s", previous.value, self.state.phase.value)

    def set_flag(self, name: str, value: bool) -> None:
        if name not in RequestConfig.flag_names():
            raise KeyError(name)
        setattr(self.state.config, name, bool(value))

    # ---------------- image sources ----------------

    def _set_image(self, encoded: str) -> None:
        if self.state.phase in RESET_ON_NEW_IMAGE:
            # never mix a previous result with a new image
            self.reset()
        else:
            self.camera.close()
        self.state.image = encoded
        self._apply(Event.IMAGE_SUPPLIED)

    def select_file(self, file) -> bool:
        try:
            encoded = image_source.from_file(file)
        except FileReadError as e:
            logger.warning("Could not use selected file: %s", e)
            return False
        self._set_image(encoded)
        return True

    def activate_camera(self) -> bool:
        return self.camera.activate()

    def close_camera(self) -> None:
        self.camera.close()

    def capture_from_camera(self, width: int = CAPTURE_WIDTH, height: int = CAPTURE_HEIGHT) -> bool:
        encoded = self.camera.capture(width, height)
        if encoded is None:
            return False
        self._set_image(encoded)
        return True

    # ---------------- request ----------------

    def submit(self) -> bool:
        """Issue the liveness call once. Returns False when the trigger is disabled."""
        if self.state.trigger_disabled:
            logger.debug("Submit ignored in phase %s", self.state.phase.value)
            return False

        payload = build_payload(self.state.config, self.state.image)
        self._apply(Event.SUBMIT)

        try:
            data = self.client.check(payload)
        except TransportError as e:
            logger.warning("Liveness check failed: %s", e)
            self.state.response = None
            self.state.error = TRANSPORT_ERROR_MESSAGE
            self._apply(Event.RESPONSE_FAILED)
            return True

        self.state.response = data
        self.state.probability = extract_probability(data)
        self.state.error = None
        self._apply(Event.RESPONSE_OK)
        logger.info("Liveness probability: %s", self.state.probability)
        return True

    def reset(self) -> None:
        self.camera.close()
        self.state = SessionState()
        self.generation += 1
        self._apply(Event.RESET)
