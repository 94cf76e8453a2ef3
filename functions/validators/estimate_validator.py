"""Request payload validation for projects and saved estimates.

Deserializes raw JSON into typed Pydantic request models and reports
field errors in a flat, API-friendly form.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, TypeAdapter, ValidationError as PydanticValidationError
import structlog

from models.calculator import ProjectInput, SliderValues
from models.project import (
    EstimateCreateRequest,
    EstimateUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)

logger = structlog.get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of payload validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    parsed: Optional[BaseModel] = None


def _format_errors(error: PydanticValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]


def _validate(model: Type[BaseModel], data: Any, payload_name: str) -> ValidationResult:
    if not isinstance(data, dict):
        return ValidationResult(
            is_valid=False,
            errors=[f"{payload_name} must be a dictionary"]
        )

    try:
        parsed = model.model_validate(data)
        return ValidationResult(is_valid=True, errors=[], parsed=parsed)
    except PydanticValidationError as e:
        errors = _format_errors(e)
        logger.warning("payload_validation_failed", payload=payload_name, errors=errors)
        return ValidationResult(is_valid=False, errors=errors)


def validate_project_input(data: Dict[str, Any]) -> ValidationResult:
    """Validate calculator inputs (projectSize, floors, location...)."""
    return _validate(ProjectInput, data, "inputs")


def validate_project_payload(data: Dict[str, Any], partial: bool = False) -> ValidationResult:
    """Validate a project create (or, with ``partial``, update) payload."""
    model = ProjectUpdateRequest if partial else ProjectCreateRequest
    return _validate(model, data, "project")


def validate_estimate_payload(data: Dict[str, Any]) -> ValidationResult:
    """Validate a saved estimate create payload."""
    return _validate(EstimateCreateRequest, data, "estimate")


def validate_estimate_update(data: Dict[str, Any]) -> ValidationResult:
    """Validate a partial saved estimate update payload."""
    return _validate(EstimateUpdateRequest, data, "estimate")


_slider_values_adapter = TypeAdapter(SliderValues)


def validate_slider_values(data: Any) -> Tuple[Optional[SliderValues], List[str]]:
    """Validate a slider id -> position mapping.

    Returns:
        (positions, errors). Positions is None when errors is non-empty.
    """
    if data is None:
        return {}, []

    try:
        return _slider_values_adapter.validate_python(data), []
    except PydanticValidationError as e:
        errors = _format_errors(e)
        logger.warning("payload_validation_failed", payload="sliderValues", errors=errors)
        return None, errors
