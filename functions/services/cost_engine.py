"""
Parametric Cost Engine for the build-out cost estimator.

Converts project inputs, quality slider positions and base $/RSF rates into
an itemized cost breakdown.

Method:
1. **Unique Project Factor** - blend of size, floor and location factors
   (weights 0.33 / 0.34 / 0.33), applied uniformly to every category.
2. **Category factors** - weighted sum of slider factors per category, each
   slider interpolated linearly between its low and high factor.
3. **Design Fees** - 70% of the construction raw factor plus 30% of the
   permitting complexity slider.
4. **Aggregation** - subtotal, contingency, grand total, and client totals
   net of the TI allowance.

The engine is pure: no I/O, no shared mutable state, and a fresh output for
every call. Lookup fallbacks are silent (unknown location and missing slider
values are neutral); only a non-positive project size is rejected.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import structlog

from config.errors import ErrorCode, ValidationError
from models.calculator import (
    BaseValues,
    CategoryResult,
    CostCategory,
    ProjectInput,
    ProjectOutput,
    SliderValues,
)
from models.cost_config import (
    CostConfiguration,
    SliderConfig,
    get_default_configuration,
)

logger = structlog.get_logger(__name__)

# Unique Project Factor blend
SIZE_WEIGHT = 0.33
FLOOR_WEIGHT = 0.34
LOCATION_WEIGHT = 0.33

# Design Fees blend
DESIGN_CONSTRUCTION_WEIGHT = 0.70
DESIGN_PERMITTING_WEIGHT = 0.30
PERMITTING_SLIDER_ID = "permittingComplexity"

NEUTRAL_FACTOR = 1.0

STANDARD_CATEGORIES = (
    CostCategory.CONSTRUCTION,
    CostCategory.FFE_APPLIANCES,
    CostCategory.SIGNAGE,
    CostCategory.TECHNOLOGY,
    CostCategory.OTHER,
)


# =============================================================================
# Data Models
# =============================================================================


@dataclass(frozen=True)
class UniqueFactorBreakdown:
    """
    Components of the Unique Project Factor.

    Attributes:
        size_factor: Factor from the project size range table
        floor_factor: Factor from the floor count table
        location_factor: Factor from the location table
        unique_project_factor: Weighted blend of the three
    """

    size_factor: float
    floor_factor: float
    location_factor: float
    unique_project_factor: float


# =============================================================================
# Unique Project Factor
# =============================================================================


def resolve_size_factor(project_size: float, config: CostConfiguration) -> float:
    """Factor of the first size range containing the project size, else 1.0."""
    for size_range in config.size_ranges:
        if size_range.contains(project_size):
            return size_range.factor
    return NEUTRAL_FACTOR


def resolve_floor_factor(floors: int, config: CostConfiguration) -> float:
    """Factor for a floor count.

    Floor counts missing from the table use the factor of the highest
    configured floor rather than interpolating.
    """
    if not config.floor_factors:
        return NEUTRAL_FACTOR
    if floors in config.floor_factors:
        return config.floor_factors[floors]
    return config.floor_factors[max(config.floor_factors)]


def resolve_location_factor(location: str, config: CostConfiguration) -> float:
    """Exact-match location factor; unknown locations are neutral (1.0)."""
    for entry in config.locations:
        if entry.location == location:
            return entry.factor
    return NEUTRAL_FACTOR


def calculate_unique_project_factor(
    inputs: ProjectInput,
    config: CostConfiguration
) -> UniqueFactorBreakdown:
    """Blend size, floor and location factors into one multiplier.

    Args:
        inputs: Project parameters.
        config: Configuration tables.

    Returns:
        UniqueFactorBreakdown with each sub-factor and the blend.
    """
    size_factor = resolve_size_factor(inputs.project_size, config)
    floor_factor = resolve_floor_factor(inputs.floors, config)
    location_factor = resolve_location_factor(inputs.location, config)

    unique_project_factor = (
        (size_factor * SIZE_WEIGHT) +
        (floor_factor * FLOOR_WEIGHT) +
        (location_factor * LOCATION_WEIGHT)
    )

    return UniqueFactorBreakdown(
        size_factor=size_factor,
        floor_factor=floor_factor,
        location_factor=location_factor,
        unique_project_factor=unique_project_factor,
    )


# =============================================================================
# Slider Interpolation
# =============================================================================


def slider_to_factor(value: float, low: float, high: float) -> float:
    """Interpolate a 0-100 slider position to a factor.

    Positions outside 0-100 are not clamped; they extrapolate linearly.
    """
    return low + (high - low) * (value / 100)


def resolve_slider_factor(slider: SliderConfig, slider_values: SliderValues) -> float:
    """Factor for one slider: interpolated if a position was given, else its default factor."""
    value = slider_values.get(slider.id)
    if value is None:
        return slider.default_value
    return slider_to_factor(value, slider.low_factor, slider.high_factor)


def derive_default_position(slider: SliderConfig) -> float:
    """Slider position (0-100) that reproduces the slider's default factor.

    Exact inverse of slider_to_factor, clamped to [0, 100]. A slider whose
    low and high factors are equal maps every position to the same factor,
    so its position is 0.
    """
    span = slider.high_factor - slider.low_factor
    if span == 0:
        return 0.0
    percent = ((slider.default_value - slider.low_factor) / span) * 100
    return max(0.0, min(100.0, percent))


def get_initial_slider_values(config: Optional[CostConfiguration] = None) -> Dict[str, float]:
    """Default 0-100 positions for every configured slider.

    Args:
        config: Configuration tables (defaults to the standard configuration).

    Returns:
        Map of slider id to position.
    """
    config = config or get_default_configuration()
    return {
        slider.id: derive_default_position(slider)
        for slider in config.all_sliders()
    }


# =============================================================================
# Category Calculations
# =============================================================================


def _build_result(
    category: CostCategory,
    raw_factor: float,
    unique_project_factor: float,
    base_rate: float,
    project_size: float
) -> CategoryResult:
    adjusted_factor = raw_factor * unique_project_factor
    cost_per_rsf = base_rate * adjusted_factor
    return CategoryResult(
        category=category.display_name,
        factor=raw_factor,
        adjusted_factor=adjusted_factor,
        cost_per_rsf=cost_per_rsf,
        total_cost=cost_per_rsf * project_size,
    )


def calculate_category(
    category: CostCategory,
    inputs: ProjectInput,
    slider_values: SliderValues,
    base_values: BaseValues,
    unique_project_factor: float,
    config: CostConfiguration
) -> CategoryResult:
    """Compute a standard (weighted slider) category.

    Args:
        category: One of the five standard categories.
        inputs: Project parameters.
        slider_values: Slider positions by id.
        base_values: Base $/RSF rates.
        unique_project_factor: Blended project factor.
        config: Configuration tables.

    Returns:
        CategoryResult for the category. A category with no sliders
        yields factor 1.0 and zero cost.
    """
    sliders = config.sliders_for(category)
    if not sliders:
        return CategoryResult(
            category=category.display_name,
            factor=NEUTRAL_FACTOR,
            adjusted_factor=NEUTRAL_FACTOR,
            cost_per_rsf=0.0,
            total_cost=0.0,
        )

    weighted_factor_sum = 0.0
    for slider in sliders:
        weighted_factor_sum += resolve_slider_factor(slider, slider_values) * slider.weight

    return _build_result(
        category,
        weighted_factor_sum,
        unique_project_factor,
        base_values.rate_for(category),
        inputs.project_size,
    )


def calculate_design_fees(
    construction_raw_factor: float,
    inputs: ProjectInput,
    slider_values: SliderValues,
    base_values: BaseValues,
    unique_project_factor: float,
    config: CostConfiguration
) -> CategoryResult:
    """Compute Design Fees from the construction raw factor and permitting slider.

    Must run after Construction: it blends Construction's raw (unadjusted)
    factor with the permitting complexity factor.
    """
    permitting_factor = NEUTRAL_FACTOR
    for slider in config.sliders_for(CostCategory.DESIGN_FEES):
        if slider.id == PERMITTING_SLIDER_ID:
            permitting_factor = resolve_slider_factor(slider, slider_values)
            break

    design_raw_factor = (
        (construction_raw_factor * DESIGN_CONSTRUCTION_WEIGHT) +
        (permitting_factor * DESIGN_PERMITTING_WEIGHT)
    )

    return _build_result(
        CostCategory.DESIGN_FEES,
        design_raw_factor,
        unique_project_factor,
        base_values.design_fees,
        inputs.project_size,
    )


# =============================================================================
# Main Calculation
# =============================================================================


def compute_project_costs(
    inputs: ProjectInput,
    slider_values: Optional[SliderValues] = None,
    base_values: Optional[BaseValues] = None,
    config: Optional[CostConfiguration] = None,
    contingency_percent: Optional[float] = None
) -> ProjectOutput:
    """Compute the itemized cost breakdown for a project.

    Args:
        inputs: Project parameters (size must be positive).
        slider_values: Slider positions by id; missing ids use default factors.
        base_values: Base $/RSF rates (defaults to the configuration's rates).
        config: Configuration tables (defaults to the standard configuration).
        contingency_percent: Contingency as a fraction (defaults to the
            configuration's contingency).

    Returns:
        ProjectOutput with six categories in fixed order and all totals.

    Raises:
        ValidationError: If the project size is not positive.
    """
    if not inputs.project_size > 0:
        raise ValidationError(
            message=f"Project size must be greater than 0 RSF, got {inputs.project_size}",
            field="projectSize",
            code=ErrorCode.INVALID_FIELD
        )

    config = config or get_default_configuration()
    base_values = base_values or config.base_values
    slider_values = slider_values or {}
    if contingency_percent is None:
        contingency_percent = config.contingency_percent

    breakdown = calculate_unique_project_factor(inputs, config)
    upf = breakdown.unique_project_factor

    categories = [
        calculate_category(category, inputs, slider_values, base_values, upf, config)
        for category in STANDARD_CATEGORIES
    ]
    construction = categories[0]
    categories.append(
        calculate_design_fees(construction.factor, inputs, slider_values, base_values, upf, config)
    )

    subtotal = sum(result.total_cost for result in categories)
    contingency = subtotal * contingency_percent
    grand_total = subtotal + contingency

    ti_allowance_per_sf = inputs.ti_allowance
    ti_allowance_total = ti_allowance_per_sf * inputs.project_size
    client_total = grand_total - ti_allowance_total

    output = ProjectOutput(
        unique_project_factor=upf,
        categories=categories,
        subtotal=subtotal,
        contingency_percent=contingency_percent,
        contingency=contingency,
        grand_total=grand_total,
        base_total_per_rsf=base_values.total_per_rsf,
        grand_total_per_rsf=grand_total / inputs.project_size,
        ti_allowance_per_sf=ti_allowance_per_sf,
        ti_allowance_total=ti_allowance_total,
        client_total=client_total,
        client_total_per_rsf=client_total / inputs.project_size,
    )

    logger.debug(
        "project_costs_computed",
        project_name=inputs.project_name,
        project_size=inputs.project_size,
        size_factor=breakdown.size_factor,
        floor_factor=breakdown.floor_factor,
        location_factor=breakdown.location_factor,
        unique_project_factor=round(upf, 4),
        grand_total=round(grand_total, 2),
    )

    return output
