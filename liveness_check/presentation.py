import json
from dataclasses import dataclass
from typing import Optional

from .lifecycle import PROBABILITY_NOT_AVAILABLE, Phase, SessionState

CHECK_LABEL = "Perform Liveness Check"
LOADING_LABEL = "Loading..."

# flag name -> (label, help text)
FLAG_LABELS = {
    "use_quality": (
        "Use Quality Check",
        "A flag to determine whether Image Quality (blur, dark, grayscale) "
        "will be computed and return as result",
    ),
    "use_attribute": (
        "Use Attribute",
        "A flag to determine whether Image Attribute (sunglasses, mask, veil) "
        "will be detected and return as result",
    ),
    "validate_quality": (
        "Validate Quality",
        "Determines whether Quality validation will be executed. The validation "
        "consists of checking blur and dark with threshold, and also checking "
        "whether the image is a black & white image (grayscale is true). It is "
        "highly recommended to set validate_quality to true as Liveness is "
        "influenced by Quality.",
    ),
    "validate_attribute": (
        "Validate Attribute",
        "Determines whether Attribute validation will be executed. The validation "
        "consists of checking whether sunglasses or mask is detected in the input image.",
    ),
    "validate_nface": (
        "Validate NFace",
        "Determines whether the number of faces validation will be executed. The "
        "validation checks whether the input image consists of more than one face.",
    ),
}


@dataclass(frozen=True)
class ResultView:
    button_label: str
    button_disabled: bool
    headline: Optional[str] = None
    raw_json: Optional[str] = None
    show_raw: bool = False
    error: Optional[str] = None
    show_reset: bool = False


def format_headline(probability) -> str:
    if probability == PROBABILITY_NOT_AVAILABLE:
        return f"Liveness: {PROBABILITY_NOT_AVAILABLE}"
    return f"Liveness: {probability}%"


def render(state: SessionState) -> ResultView:
    """What the response column shows for the current session state."""
    label = LOADING_LABEL if state.phase is Phase.REQUESTING else CHECK_LABEL

    if state.phase is Phase.COMPLETED:
        return ResultView(
            button_label=label,
            button_disabled=True,
            headline=format_headline(state.probability),
            raw_json=json.dumps(state.response, indent=2, ensure_ascii=False),
            show_raw=True,
            show_reset=True,
        )

    if state.phase is Phase.FAILED:
        return ResultView(
            button_label=label,
            button_disabled=True,
            error=state.error,
            show_reset=True,
        )

    return ResultView(
        button_label=label,
        button_disabled=state.trigger_disabled,
        show_reset=state.image is not None,
    )
