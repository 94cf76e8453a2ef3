"""Calculator Pydantic models for the build-out cost estimator.

This module defines the inputs and outputs of the parametric cost engine:
project parameters, per-RSF base rates, and the itemized cost breakdown.
All models are frozen so a computed output can be shared safely.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Slider id -> UI position (nominally 0-100)
SliderValues = Dict[str, float]


# =============================================================================
# ENUMS
# =============================================================================


class CostCategory(str, Enum):
    """Cost categories in the order they appear in every output."""

    CONSTRUCTION = "construction"
    FFE_APPLIANCES = "ffeAppliances"
    SIGNAGE = "signage"
    TECHNOLOGY = "technology"
    OTHER = "other"
    DESIGN_FEES = "designFees"

    @property
    def display_name(self) -> str:
        """Label shown in tables and comparisons."""
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    CostCategory.CONSTRUCTION: "Construction Costs",
    CostCategory.FFE_APPLIANCES: "FF&E / Appliances",
    CostCategory.SIGNAGE: "Signage",
    CostCategory.TECHNOLOGY: "Technology",
    CostCategory.OTHER: "Other",
    CostCategory.DESIGN_FEES: "Design Fees",
}


# =============================================================================
# PROJECT INPUT MODEL
# =============================================================================


class ProjectInput(BaseModel):
    """Project parameters driving the Unique Project Factor."""

    project_name: str = Field(
        default="",
        alias="projectName",
        description="Display name of the project"
    )
    project_size: float = Field(
        ...,
        gt=0,
        alias="projectSize",
        description="Rentable square feet (RSF)"
    )
    floors: int = Field(
        ...,
        ge=1,
        description="Number of floors (configured range 1-7)"
    )
    location: str = Field(
        ...,
        description="Market location key (unknown keys are neutral)"
    )
    ti_allowance_per_sf: Optional[float] = Field(
        default=None,
        ge=0,
        alias="tiAllowancePerSF",
        description="Tenant improvement allowance ($/RSF)"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def ti_allowance(self) -> float:
        """TI allowance per RSF, 0 when not supplied."""
        return self.ti_allowance_per_sf or 0.0


# =============================================================================
# BASE VALUES MODELS
# =============================================================================


class TechnologyValues(BaseModel):
    """Technology base rates, split into AV, IT and security."""

    av: float = Field(..., ge=0, description="Audio/visual ($/RSF)")
    it: float = Field(..., ge=0, description="IT infrastructure ($/RSF)")
    sec: float = Field(..., ge=0, description="Security ($/RSF)")

    class Config:
        frozen = True

    @property
    def total(self) -> float:
        return self.av + self.it + self.sec


class BaseValues(BaseModel):
    """Base cost per RSF for each cost domain.

    Technology has no single top-level rate; its rate is the sum of
    the AV, IT and security sub-rates.
    """

    construction_costs: float = Field(..., ge=0, alias="constructionCosts")
    design_fees: float = Field(..., ge=0, alias="designFees")
    ffe_appliances: float = Field(..., ge=0, alias="ffeAppliances")
    signage: float = Field(..., ge=0)
    technology: TechnologyValues
    other: float = Field(..., ge=0)

    class Config:
        populate_by_name = True
        frozen = True

    def rate_for(self, category: CostCategory) -> float:
        """Get the base $/RSF rate for a cost category.

        Args:
            category: Cost category.

        Returns:
            Base rate in dollars per RSF.
        """
        rates = {
            CostCategory.CONSTRUCTION: self.construction_costs,
            CostCategory.FFE_APPLIANCES: self.ffe_appliances,
            CostCategory.SIGNAGE: self.signage,
            CostCategory.TECHNOLOGY: self.technology.total,
            CostCategory.OTHER: self.other,
            CostCategory.DESIGN_FEES: self.design_fees,
        }
        return rates[CostCategory(category)]

    @property
    def total_per_rsf(self) -> float:
        """Sum of all six base rates."""
        return (
            self.construction_costs +
            self.design_fees +
            self.ffe_appliances +
            self.signage +
            self.technology.total +
            self.other
        )

    def with_overrides(self, overrides: Dict[str, Any]) -> "BaseValues":
        """Return a complete BaseValues with a partial override merged in.

        Args:
            overrides: camelCase or snake_case fields to replace. A partial
                ``technology`` dict is merged with the current sub-rates.

        Returns:
            New BaseValues instance; this one is left untouched.
        """
        merged = self.model_dump(by_alias=True)
        for key, value in (overrides or {}).items():
            alias = _BASE_VALUE_ALIASES.get(key, key)
            if alias == "technology" and isinstance(value, dict):
                merged["technology"] = {**merged["technology"], **value}
            else:
                merged[alias] = value
        return BaseValues.model_validate(merged)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


_BASE_VALUE_ALIASES = {
    "construction_costs": "constructionCosts",
    "design_fees": "designFees",
    "ffe_appliances": "ffeAppliances",
}


# =============================================================================
# OUTPUT MODELS
# =============================================================================


class CategoryResult(BaseModel):
    """Computed cost for one category."""

    category: str = Field(..., description="Category display name")
    factor: float = Field(..., description="Raw weighted slider factor")
    adjusted_factor: float = Field(
        ...,
        alias="adjustedFactor",
        description="factor x Unique Project Factor"
    )
    cost_per_rsf: float = Field(
        ...,
        alias="costPerRSF",
        description="adjustedFactor x base rate"
    )
    total_cost: float = Field(
        ...,
        alias="totalCost",
        description="costPerRSF x project size"
    )

    class Config:
        populate_by_name = True
        frozen = True


class ProjectOutput(BaseModel):
    """Full itemized result of one calculation."""

    unique_project_factor: float = Field(..., alias="uniqueProjectFactor")
    categories: List[CategoryResult] = Field(
        ...,
        description="Six category results in fixed display order"
    )
    subtotal: float
    contingency_percent: float = Field(..., alias="contingencyPercent")
    contingency: float
    grand_total: float = Field(..., alias="grandTotal")
    base_total_per_rsf: float = Field(..., alias="baseTotalPerRSF")
    grand_total_per_rsf: float = Field(..., alias="grandTotalPerRSF")
    ti_allowance_per_sf: float = Field(..., alias="tiAllowancePerSF")
    ti_allowance_total: float = Field(..., alias="tiAllowanceTotal")
    client_total: float = Field(..., alias="clientTotal")
    client_total_per_rsf: float = Field(..., alias="clientTotalPerRSF")

    class Config:
        populate_by_name = True
        frozen = True

    def get_category(self, name: str) -> Optional[CategoryResult]:
        """Find a category result by display name."""
        for result in self.categories:
            if result.category == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dict for API responses and storage."""
        return self.model_dump(by_alias=True)
