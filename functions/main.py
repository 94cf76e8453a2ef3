"""Cloud Function entry points for the build-out cost estimator.

Provides HTTP endpoints for:
- Calculating estimates and slider defaults
- Project CRUD
- Saved estimate CRUD
- Comparing saved estimates
- Restoring shared calculator links
"""

import asyncio
import json
import os
from typing import Any, Awaitable, Callable, Dict, Optional
from datetime import datetime, date, timezone

import structlog
from firebase_functions import https_fn, options
from firebase_admin import initialize_app

from config.settings import settings
from config.errors import (
    EstimatorError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)
from models.calculator import ProjectInput
from models.cost_config import CostConfiguration, get_market_tier_configuration
from models.project import SavedEstimate
from services.comparison_service import compare_estimates as run_comparison
from services.cost_engine import compute_project_costs, get_initial_slider_values
from services.firestore_service import FirestoreService
from services.presentation_service import build_presentation_summary, get_slider_quality_labels
from services.share_state import decode_state, encode_state
from utils.logging_config import configure_logging, log_estimate_summary
from validators.estimate_validator import (
    ValidationResult,
    validate_estimate_payload,
    validate_estimate_update,
    validate_project_input,
    validate_project_payload,
    validate_slider_values,
)

# Initialize Firebase Admin SDK
try:
    initialize_app()
except ValueError:
    # Already initialized
    pass

configure_logging(settings.log_level, json_output=settings.log_json)
logger = structlog.get_logger()

settings.validate()
if settings.is_emulator_mode:
    # Firestore client picks the emulator up from the environment
    os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)
    logger.info("firestore_emulator_enabled", host=os.environ["FIRESTORE_EMULATOR_HOST"])

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Any) -> Dict[str, Any]:
    """Build success response."""
    return {"success": True, "data": data}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Args:
        req: HTTP request object.

    Returns:
        Parsed JSON data.

    Raises:
        ValidationError: If JSON is invalid.
    """
    try:
        return req.get_json(force=True) or {}
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}"
        )


def require_field(data: Dict[str, Any], field: str) -> Any:
    """Get a required request field.

    Raises:
        ValidationError: If the field is missing or empty.
    """
    value = data.get(field)
    if value in (None, "", [], {}):
        raise ValidationError(
            message=f"Missing {field} in request",
            field=field,
            code=ErrorCode.MISSING_FIELD
        )
    return value


def _raise_if_invalid(result: ValidationResult, message: str) -> None:
    if not result.is_valid:
        raise ValidationError(
            message=message,
            code=ErrorCode.INVALID_SCHEMA,
            details={"errors": result.errors}
        )


def _resolve_config(data: Dict[str, Any]) -> CostConfiguration:
    """Configuration for a request: market tier, base value overrides, contingency."""
    config = get_market_tier_configuration(data.get("marketTier") or settings.default_market_tier)

    overrides = data.get("baseValues")
    if overrides is not None and not isinstance(overrides, dict):
        raise ValidationError(
            message="baseValues must be an object",
            field="baseValues",
            code=ErrorCode.INVALID_FIELD
        )
    if overrides:
        try:
            config = config.with_base_values(config.base_values.with_overrides(overrides))
        except ValueError as e:
            raise ValidationError(
                message=f"Invalid baseValues: {str(e)}",
                field="baseValues",
                code=ErrorCode.INVALID_FIELD
            )

    contingency = data.get("contingencyPercent")
    if contingency is None:
        contingency = settings.default_contingency_percent
    try:
        contingency = float(contingency)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid contingencyPercent: {contingency!r}",
            field="contingencyPercent",
            code=ErrorCode.INVALID_FIELD
        )
    return config.with_contingency(contingency)


def _status_for(error: EstimatorError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    return 500


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""

    def _json_default(o: Any):
        """JSON serializer for objects not serializable by default.

        Firestore returns timestamp types like `DatetimeWithNanoseconds` which
        behave like datetime objects but are not JSON serializable.
        """
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if hasattr(o, "isoformat"):
            try:
                return o.isoformat()
            except (TypeError, ValueError):
                pass
        return str(o)

    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )


def _handle_request(
    req: https_fn.Request,
    operation: Callable[[Dict[str, Any]], Awaitable[Any]],
    operation_name: str,
    success_status: int = 200
) -> https_fn.Response:
    """Run an async operation against the request body and wrap the result."""
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        result = asyncio.run(operation(data))
        return _json_response(success_response(result), status=success_status)

    except EstimatorError as e:
        status = _status_for(e)
        if status >= 500:
            logger.error(f"{operation_name}_error", error=e.message, code=e.code)
        return _json_response(error_response(e.code, e.message, e.details), status=status)
    except Exception as e:
        logger.exception(f"{operation_name}_exception", error=str(e))
        return _json_response(
            error_response(
                ErrorCode.CALCULATION_FAILED if operation_name.startswith("calculate") else ErrorCode.FIRESTORE_ERROR,
                f"Failed to run {operation_name}: {str(e)}"
            ),
            status=500
        )


ENDPOINT_CONFIG = {
    "timeout_sec": 30,
    "memory": options.MemoryOption.MB_256,
    "region": "us-central1"
}

# ============================================================================
# Calculator Operations
# ============================================================================


async def _calculate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    """Run the cost engine for one set of inputs."""
    validation = validate_project_input(require_field(data, "inputs"))
    _raise_if_invalid(validation, "Invalid inputs")
    inputs: ProjectInput = validation.parsed

    config = _resolve_config(data)
    slider_values, errors = validate_slider_values(data.get("sliderValues"))
    if errors:
        raise ValidationError(
            message="Invalid sliderValues",
            field="sliderValues",
            code=ErrorCode.INVALID_FIELD,
            details={"errors": errors}
        )

    output = compute_project_costs(inputs, slider_values, config=config)
    log_estimate_summary(inputs, output)

    return {
        "output": output.to_dict(),
        "summary": build_presentation_summary(inputs, output),
        "sliderLabels": get_slider_quality_labels(slider_values, config),
        "shareToken": encode_state(
            inputs, slider_values, config.base_values, config.contingency_percent
        ),
    }


async def _slider_defaults_async(data: Dict[str, Any]) -> Dict[str, Any]:
    """Default slider positions and the tables behind them."""
    config = _resolve_config(data)
    return {
        "sliderValues": get_initial_slider_values(config),
        "sliders": {
            category.value: [s.model_dump(by_alias=True) for s in sliders]
            for category, sliders in config.sliders.items()
        },
        "baseValues": config.base_values.to_dict(),
        "locations": config.location_names(),
        "floors": sorted(config.floor_factors),
        "contingencyPercent": config.contingency_percent,
    }


async def _load_shared_state_async(data: Dict[str, Any]) -> Dict[str, Any]:
    """Restore calculator state from a share token and recalculate."""
    state = decode_state(require_field(data, "token"))
    if state is None:
        raise ValidationError(
            message="Invalid or expired share token",
            field="token",
            code=ErrorCode.INVALID_FIELD
        )

    config = _resolve_config({})
    if state.base_values is not None:
        config = config.with_base_values(state.base_values)
    if state.contingency_percent is not None:
        config = config.with_contingency(state.contingency_percent)
    output = compute_project_costs(state.inputs, state.slider_values, config=config)

    return {
        "inputs": state.inputs.model_dump(by_alias=True),
        "sliderValues": state.slider_values,
        "baseValues": config.base_values.to_dict(),
        "contingencyPercent": config.contingency_percent,
        "output": output.to_dict(),
    }


# ============================================================================
# Project Operations
# ============================================================================


async def _list_projects_async(data: Dict[str, Any]) -> Any:
    return await FirestoreService().list_projects(bool(data.get("includeArchived")))


async def _get_project_async(data: Dict[str, Any]) -> Dict[str, Any]:
    project_id = require_field(data, "projectId")
    project = await FirestoreService().get_project_with_estimates(project_id)
    if project is None:
        raise NotFoundError(ErrorCode.PROJECT_NOT_FOUND, "Project", project_id)
    return project


async def _create_project_async(data: Dict[str, Any]) -> Dict[str, Any]:
    validation = validate_project_payload(require_field(data, "project"))
    _raise_if_invalid(validation, "Invalid project data")
    return await FirestoreService().create_project(validation.parsed)


async def _update_project_async(data: Dict[str, Any]) -> Dict[str, Any]:
    project_id = require_field(data, "projectId")
    validation = validate_project_payload(data.get("updates") or {}, partial=True)
    _raise_if_invalid(validation, "Invalid project data")

    project = await FirestoreService().update_project(project_id, validation.parsed)
    if project is None:
        raise NotFoundError(ErrorCode.PROJECT_NOT_FOUND, "Project", project_id)
    return project


async def _archive_project_async(data: Dict[str, Any]) -> Dict[str, Any]:
    project_id = require_field(data, "projectId")
    project = await FirestoreService().archive_project(project_id)
    if project is None:
        raise NotFoundError(ErrorCode.PROJECT_NOT_FOUND, "Project", project_id)
    return project


async def _delete_project_async(data: Dict[str, Any]) -> Dict[str, Any]:
    project_id = require_field(data, "projectId")
    if not await FirestoreService().delete_project(project_id):
        raise NotFoundError(ErrorCode.PROJECT_NOT_FOUND, "Project", project_id)
    return {"deleted": True, "projectId": project_id}


async def _create_project_with_estimate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    validation = validate_project_payload(require_field(data, "project"))
    _raise_if_invalid(validation, "Invalid project data")
    return await FirestoreService().create_project_with_estimate(
        validation.parsed,
        require_field(data, "estimate")
    )


# ============================================================================
# Saved Estimate Operations
# ============================================================================


async def _list_estimates_async(data: Dict[str, Any]) -> Any:
    return await FirestoreService().list_estimates_by_project(
        require_field(data, "projectId"),
        bool(data.get("includeArchived"))
    )


async def _get_estimates_async(data: Dict[str, Any]) -> Any:
    service = FirestoreService()
    estimate_id: Optional[str] = data.get("estimateId")
    if estimate_id:
        estimate = await service.get_estimate(estimate_id)
        if estimate is None:
            raise NotFoundError(ErrorCode.ESTIMATE_NOT_FOUND, "Estimate", estimate_id)
        return estimate
    return await service.get_estimates(list(data.get("estimateIds") or []))


async def _create_estimate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    project_id = require_field(data, "projectId")
    validation = validate_estimate_payload(require_field(data, "estimate"))
    _raise_if_invalid(validation, "Invalid estimate data")
    return await FirestoreService().create_estimate(project_id, validation.parsed)


async def _update_estimate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    estimate_id = require_field(data, "estimateId")
    validation = validate_estimate_update(data.get("updates") or {})
    _raise_if_invalid(validation, "Invalid estimate data")

    estimate = await FirestoreService().update_estimate(estimate_id, validation.parsed)
    if estimate is None:
        raise NotFoundError(ErrorCode.ESTIMATE_NOT_FOUND, "Estimate", estimate_id)
    return estimate


async def _archive_estimate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    estimate_id = require_field(data, "estimateId")
    estimate = await FirestoreService().archive_estimate(estimate_id)
    if estimate is None:
        raise NotFoundError(ErrorCode.ESTIMATE_NOT_FOUND, "Estimate", estimate_id)
    return estimate


async def _delete_estimate_async(data: Dict[str, Any]) -> Dict[str, Any]:
    estimate_id = require_field(data, "estimateId")
    if not await FirestoreService().delete_estimate(estimate_id):
        raise NotFoundError(ErrorCode.ESTIMATE_NOT_FOUND, "Estimate", estimate_id)
    return {"deleted": True, "estimateId": estimate_id}


async def _compare_estimates_async(data: Dict[str, Any]) -> Dict[str, Any]:
    estimate_ids = list(require_field(data, "estimateIds"))
    records = await FirestoreService().get_estimates(estimate_ids)
    estimates = [SavedEstimate.model_validate(record) for record in records]
    return run_comparison(estimates).to_dict()


async def _health_async(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ============================================================================
# HTTP Endpoints
# ============================================================================


@https_fn.on_request(**ENDPOINT_CONFIG)
def health(req: https_fn.Request) -> https_fn.Response:
    """Health check."""
    return _handle_request(req, _health_async, "health")


@https_fn.on_request(**ENDPOINT_CONFIG)
def calculate_estimate(req: https_fn.Request) -> https_fn.Response:
    """Calculate an itemized estimate.

    Request body:
    {
        "inputs": {"projectName": "HQ", "projectSize": 25000, "floors": 1,
                   "location": "New York, NY", "tiAllowancePerSF": 10},
        "sliderValues": {"levelOfFinish": 75},   // Optional, 0-100
        "baseValues": {"constructionCosts": 280}, // Optional partial override
        "marketTier": "MEDIUM",                   // Optional
        "contingencyPercent": 0.05                // Optional
    }

    Response:
    {
        "success": true,
        "data": {"output": {...}, "summary": {...}, "sliderLabels": {...}, "shareToken": "..."}
    }
    """
    return _handle_request(req, _calculate_async, "calculate_estimate")


@https_fn.on_request(**ENDPOINT_CONFIG)
def get_slider_defaults(req: https_fn.Request) -> https_fn.Response:
    """Get default slider positions, slider definitions and base rates."""
    return _handle_request(req, _slider_defaults_async, "get_slider_defaults")


@https_fn.on_request(**ENDPOINT_CONFIG)
def load_shared_state(req: https_fn.Request) -> https_fn.Response:
    """Restore a shared calculator link.

    Request body:
    {
        "token": "eyJpIjp7..."
    }
    """
    return _handle_request(req, _load_shared_state_async, "load_shared_state")


@https_fn.on_request(**ENDPOINT_CONFIG)
def list_projects(req: https_fn.Request) -> https_fn.Response:
    """List projects (optionally including archived ones)."""
    return _handle_request(req, _list_projects_async, "list_projects")


@https_fn.on_request(**ENDPOINT_CONFIG)
def get_project(req: https_fn.Request) -> https_fn.Response:
    """Get a project with its active estimates."""
    return _handle_request(req, _get_project_async, "get_project")


@https_fn.on_request(**ENDPOINT_CONFIG)
def create_project(req: https_fn.Request) -> https_fn.Response:
    """Create a project.

    Request body:
    {
        "project": {"name": "HQ Relocation", "clientName": "Acme"}
    }
    """
    return _handle_request(req, _create_project_async, "create_project", success_status=201)


@https_fn.on_request(**ENDPOINT_CONFIG)
def update_project(req: https_fn.Request) -> https_fn.Response:
    """Update project fields."""
    return _handle_request(req, _update_project_async, "update_project")


@https_fn.on_request(**ENDPOINT_CONFIG)
def archive_project(req: https_fn.Request) -> https_fn.Response:
    """Archive (soft delete) a project."""
    return _handle_request(req, _archive_project_async, "archive_project")


@https_fn.on_request(**ENDPOINT_CONFIG)
def create_project_with_estimate(req: https_fn.Request) -> https_fn.Response:
    """Create a project and its first estimate in one call."""
    return _handle_request(
        req, _create_project_with_estimate_async, "create_project_with_estimate", success_status=201
    )


@https_fn.on_request(**ENDPOINT_CONFIG)
def list_estimates(req: https_fn.Request) -> https_fn.Response:
    """List a project's saved estimates."""
    return _handle_request(req, _list_estimates_async, "list_estimates")


@https_fn.on_request(**ENDPOINT_CONFIG)
def get_estimates(req: https_fn.Request) -> https_fn.Response:
    """Get one estimate ("estimateId") or several ("estimateIds")."""
    return _handle_request(req, _get_estimates_async, "get_estimates")


@https_fn.on_request(**ENDPOINT_CONFIG)
def create_estimate(req: https_fn.Request) -> https_fn.Response:
    """Save an estimate under a project.

    Request body:
    {
        "projectId": "abc123",
        "estimate": {"name": "Option A", "inputs": {...}, "sliderValues": {...}}
    }
    """
    return _handle_request(req, _create_estimate_async, "create_estimate", success_status=201)


@https_fn.on_request(**ENDPOINT_CONFIG)
def update_estimate(req: https_fn.Request) -> https_fn.Response:
    """Update an estimate (recalculates when inputs change)."""
    return _handle_request(req, _update_estimate_async, "update_estimate")


@https_fn.on_request(**ENDPOINT_CONFIG)
def archive_estimate(req: https_fn.Request) -> https_fn.Response:
    """Archive (soft delete) an estimate."""
    return _handle_request(req, _archive_estimate_async, "archive_estimate")


@https_fn.on_request(**ENDPOINT_CONFIG)
def delete_project(req: https_fn.Request) -> https_fn.Response:
    """Permanently delete a project and all of its estimates.

    Request body:
    {
        "projectId": "abc123"
    }
    """
    return _handle_request(req, _delete_project_async, "delete_project")


@https_fn.on_request(**ENDPOINT_CONFIG)
def delete_estimate(req: https_fn.Request) -> https_fn.Response:
    """Permanently delete a saved estimate."""
    return _handle_request(req, _delete_estimate_async, "delete_estimate")


@https_fn.on_request(**ENDPOINT_CONFIG)
def compare_estimates(req: https_fn.Request) -> https_fn.Response:
    """Compare two or more saved estimates.

    Request body:
    {
        "estimateIds": ["est-a", "est-b"]
    }
    """
    return _handle_request(req, _compare_estimates_async, "compare_estimates")
