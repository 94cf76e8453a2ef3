"""Cost configuration tables for the build-out cost estimator.

Defines the static lookup tables consumed by the cost engine (size ranges,
floor factors, locations, slider definitions, base rates) and bundles them
into an immutable CostConfiguration that is passed to every calculation.
"""

import math
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from config.errors import ErrorCode, ValidationError
from models.calculator import BaseValues, CostCategory, TechnologyValues


# =============================================================================
# ENUMS
# =============================================================================


class MarketTier(str, Enum):
    """Base cost scenario presets."""

    LOW = "LOW"         # ~$270/RSF base
    MEDIUM = "MEDIUM"   # ~$350/RSF base (default)
    HIGH = "HIGH"       # ~$410/RSF base


# =============================================================================
# TABLE ROW MODELS
# =============================================================================


class SizeRange(BaseModel):
    """Project size band and its factor. ``max`` may be infinite."""

    label: str
    min: float = Field(..., ge=0)
    max: float
    factor: float

    class Config:
        frozen = True

    def contains(self, project_size: float) -> bool:
        return self.min <= project_size <= self.max


class LocationFactor(BaseModel):
    """Named market location and its cost factor."""

    location: str
    factor: float

    class Config:
        frozen = True


class SliderConfig(BaseModel):
    """Definition of a quality slider.

    ``default_value`` is a factor, not a 0-100 position.
    """

    id: str
    label: str
    weight: float = Field(..., ge=0, le=1)
    low_factor: float = Field(..., alias="lowFactor")
    high_factor: float = Field(..., alias="highFactor")
    default_value: float = Field(..., alias="defaultValue")

    class Config:
        populate_by_name = True
        frozen = True


# =============================================================================
# CONFIGURATION MODEL
# =============================================================================


class CostConfiguration(BaseModel):
    """Immutable set of tables used by the cost engine."""

    size_ranges: Tuple[SizeRange, ...]
    floor_factors: Dict[int, float]
    locations: Tuple[LocationFactor, ...]
    sliders: Dict[CostCategory, Tuple[SliderConfig, ...]]
    base_values: BaseValues
    contingency_percent: float = Field(..., ge=0, le=1)

    class Config:
        frozen = True

    def sliders_for(self, category: CostCategory) -> Tuple[SliderConfig, ...]:
        """Sliders configured for a category (empty if none)."""
        return self.sliders.get(CostCategory(category), ())

    def all_sliders(self) -> List[SliderConfig]:
        """Every slider across all categories, in category order."""
        return [
            slider
            for category in CostCategory
            for slider in self.sliders_for(category)
        ]

    def get_slider(self, slider_id: str) -> Optional[SliderConfig]:
        for slider in self.all_sliders():
            if slider.id == slider_id:
                return slider
        return None

    def location_names(self) -> List[str]:
        return [entry.location for entry in self.locations]

    def with_base_values(self, base_values: BaseValues) -> "CostConfiguration":
        return self.model_copy(update={"base_values": base_values})

    def with_contingency(self, contingency_percent: float) -> "CostConfiguration":
        if not 0.0 <= contingency_percent <= 1.0:
            raise ValidationError(
                message=f"Contingency must be a fraction between 0 and 1, got {contingency_percent}",
                field="contingencyPercent",
                code=ErrorCode.INVALID_FIELD
            )
        return self.model_copy(update={"contingency_percent": contingency_percent})


# =============================================================================
# DEFAULT TABLES
# =============================================================================


PROJECT_SIZE_RANGES: Tuple[SizeRange, ...] = (
    SizeRange(label="< 15,000 RSF", min=0, max=15000, factor=1.5),
    SizeRange(label="15,001 - 30,000 RSF", min=15001, max=30000, factor=1.1),
    SizeRange(label="30,001 - 60,000 RSF", min=30001, max=60000, factor=1.0),
    SizeRange(label="60,000+ RSF", min=60001, max=math.inf, factor=0.98),
)

FLOOR_FACTORS: Dict[int, float] = {
    1: 1.0,
    2: 1.2,
    3: 1.3,
    4: 1.35,
    5: 1.37,
    6: 1.4,
    7: 1.45,
}

LOCATIONS: Tuple[LocationFactor, ...] = (
    LocationFactor(location="New York, NY", factor=1.0),
    LocationFactor(location="Chicago", factor=0.9),
    LocationFactor(location="Boston", factor=0.9),
    LocationFactor(location="LA", factor=1.0),
    LocationFactor(location="Atlanta", factor=0.85),
)

BASE_VALUES_PER_RSF = BaseValues(
    construction_costs=260.75,
    design_fees=21.0,
    ffe_appliances=40.25,
    signage=5.25,
    technology=TechnologyValues(av=11.55, it=3.85, sec=3.85),
    other=3.5,
)

DEFAULT_CONTINGENCY_PERCENT = 0.05


def _slider(
    slider_id: str,
    label: str,
    weight: float,
    low: float,
    high: float,
    default: float
) -> SliderConfig:
    return SliderConfig(
        id=slider_id,
        label=label,
        weight=weight,
        low_factor=low,
        high_factor=high,
        default_value=default,
    )


INITIAL_SLIDERS: Dict[CostCategory, Tuple[SliderConfig, ...]] = {
    CostCategory.CONSTRUCTION: (
        _slider("programRequirements", "Program Requirements", 0.40, 0.70, 1.40, 1.05),
        _slider("acousticalPerformance", "Acoustical Performance", 0.20, 0.70, 1.25, 0.975),
        _slider("levelOfFinish", "Level of Finish", 0.20, 0.75, 1.25, 1.00),
        _slider("amenities", "Amenities", 0.075, 0.75, 1.10, 0.925),
        _slider("criticalSystems", "Critical Systems", 0.075, 0.75, 1.10, 0.925),
        _slider("comfort", "Comfort", 0.05, 0.75, 1.10, 0.925),
    ),
    CostCategory.FFE_APPLIANCES: (
        _slider("ffe", "FF&E", 0.95, 0.75, 1.20, 0.975),
        _slider("appliances", "Appliances", 0.05, 0.50, 2.00, 1.25),
    ),
    CostCategory.SIGNAGE: (
        _slider("signage", "Signage", 1.00, 0.75, 1.20, 0.975),
    ),
    CostCategory.TECHNOLOGY: (
        _slider("av", "AV", 0.60, 0.80, 1.50, 1.15),
        _slider("it", "IT", 0.25, 0.80, 1.30, 1.05),
        _slider("sec", "SEC", 0.15, 0.80, 1.20, 1.00),
    ),
    CostCategory.OTHER: (
        _slider("movingCosts", "Moving Costs", 1.00, 0.80, 1.20, 1.00),
    ),
    # Design fees blend the construction factor with this single slider
    CostCategory.DESIGN_FEES: (
        _slider("permittingComplexity", "Permitting Complexity", 0.30, 0.80, 1.20, 1.00),
    ),
}

# MEDIUM is the published rate table. LOW and HIGH are illustrative rates
# scaled to roughly $270 and $410/RSF, not sourced market data.
BASE_COST_SCENARIOS: Dict[MarketTier, BaseValues] = {
    MarketTier.LOW: BaseValues(
        construction_costs=200.0,
        design_fees=16.5,
        ffe_appliances=31.0,
        signage=4.0,
        technology=TechnologyValues(av=8.9, it=2.95, sec=2.95),
        other=3.7,
    ),
    MarketTier.MEDIUM: BASE_VALUES_PER_RSF,
    MarketTier.HIGH: BaseValues(
        construction_costs=305.0,
        design_fees=24.5,
        ffe_appliances=47.5,
        signage=6.25,
        technology=TechnologyValues(av=13.5, it=4.5, sec=4.5),
        other=4.25,
    ),
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


@lru_cache(maxsize=1)
def get_default_configuration() -> CostConfiguration:
    """Get the standard (medium tier) configuration.

    Built once and shared; the returned object is frozen.

    Returns:
        CostConfiguration with the default tables.
    """
    return CostConfiguration(
        size_ranges=PROJECT_SIZE_RANGES,
        floor_factors=FLOOR_FACTORS,
        locations=LOCATIONS,
        sliders=INITIAL_SLIDERS,
        base_values=BASE_VALUES_PER_RSF,
        contingency_percent=DEFAULT_CONTINGENCY_PERCENT,
    )


def get_market_tier_configuration(tier) -> CostConfiguration:
    """Get the default configuration with a market tier's base rates.

    Args:
        tier: MarketTier or its name ("LOW", "MEDIUM", "HIGH").

    Returns:
        CostConfiguration using the tier's base values.

    Raises:
        ValidationError: If the tier is unknown.
    """
    try:
        market_tier = MarketTier(str(getattr(tier, "value", tier)).upper())
    except ValueError:
        raise ValidationError(
            message=f"Unknown market tier: {tier}",
            field="marketTier",
            details={"allowed": [t.value for t in MarketTier]},
            code=ErrorCode.UNKNOWN_MARKET_TIER
        )
    return get_default_configuration().with_base_values(BASE_COST_SCENARIOS[market_tier])
