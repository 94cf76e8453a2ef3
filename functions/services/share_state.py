"""Shareable link state for the calculator.

Encodes calculator inputs, slider positions and (optionally) base rates
and contingency as URL-safe base64 JSON, and decodes them back. Malformed tokens decode
to None rather than raising.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from models.calculator import BaseValues, ProjectInput, SliderValues

logger = structlog.get_logger(__name__)


@dataclass
class SharedState:
    """Calculator state restored from a share token."""

    inputs: ProjectInput
    slider_values: SliderValues
    base_values: Optional[BaseValues] = None
    contingency_percent: Optional[float] = None


def encode_state(
    inputs: ProjectInput,
    slider_values: SliderValues,
    base_values: Optional[BaseValues] = None,
    contingency_percent: Optional[float] = None
) -> str:
    """Encode calculator state as a URL-safe token.

    Args:
        inputs: Project parameters.
        slider_values: Slider positions by id.
        base_values: Optional custom base rates.
        contingency_percent: Optional contingency fraction (0-1).

    Returns:
        URL-safe base64 string.
    """
    state = {
        "i": inputs.model_dump(by_alias=True, exclude_none=True),
        "s": dict(slider_values),
    }
    if base_values is not None:
        state["b"] = base_values.to_dict()
    if contingency_percent is not None:
        state["c"] = contingency_percent
    payload = json.dumps(state, separators=(",", ":"), sort_keys=True)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_state(token: str) -> Optional[SharedState]:
    """Decode a share token.

    Returns:
        SharedState, or None if the token is empty or malformed.
    """
    if not token:
        return None

    try:
        padded = token + "=" * (-len(token) % 4)
        state = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        if not isinstance(state, dict) or not state.get("i") or "s" not in state:
            return None

        base_values = state.get("b")
        contingency = state.get("c")
        if contingency is not None:
            contingency = float(contingency)
            if not 0.0 <= contingency <= 1.0:
                logger.warning("share_state_decode_failed", error=f"contingency out of range: {contingency}")
                return None
        return SharedState(
            inputs=ProjectInput.model_validate(state["i"]),
            slider_values={str(k): float(v) for k, v in state["s"].items()},
            base_values=BaseValues.model_validate(base_values) if base_values else None,
            contingency_percent=contingency,
        )
    except (binascii.Error, UnicodeError, ValueError, TypeError, AttributeError, PydanticValidationError) as e:
        logger.warning("share_state_decode_failed", error=str(e)[:200])
        return None
