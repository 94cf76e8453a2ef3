"""Client-facing presentation helpers.

Turns a ProjectOutput into the figures shown to clients: the headline
total (net of any TI allowance), per-category shares, quality labels for
slider positions, and human-readable currency strings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from models.calculator import CategoryResult, ProjectInput, ProjectOutput, SliderValues
from models.cost_config import CostConfiguration, get_default_configuration
from services.cost_engine import derive_default_position


class QualityLevel(str, Enum):
    """Qualitative label for a slider position."""

    BASIC = "Basic"
    STANDARD = "Standard"
    ENHANCED = "Enhanced"
    PREMIUM = "Premium"
    LUXURY = "Luxury"


@dataclass
class HeadlineTotal:
    """The total a client sees first."""

    label: str
    total: float
    per_rsf: float


def get_quality_label(position: float) -> QualityLevel:
    """Map a 0-100 slider position to a quality level."""
    if position <= 20:
        return QualityLevel.BASIC
    if position <= 40:
        return QualityLevel.STANDARD
    if position <= 60:
        return QualityLevel.ENHANCED
    if position <= 80:
        return QualityLevel.PREMIUM
    return QualityLevel.LUXURY


def get_slider_quality_labels(
    slider_values: SliderValues,
    config: Optional[CostConfiguration] = None
) -> Dict[str, str]:
    """Quality label for every configured slider.

    Sliders without a supplied position are labelled at their default position.
    """
    config = config or get_default_configuration()
    labels = {}
    for slider in config.all_sliders():
        position = slider_values.get(slider.id)
        if position is None:
            position = derive_default_position(slider)
        labels[slider.id] = get_quality_label(position).value
    return labels


def format_currency(value: float) -> str:
    """Whole-dollar currency string, e.g. '$1,234,568'."""
    return f"${value:,.0f}"


def format_compact_currency(value: float) -> str:
    """Compact currency string, e.g. '$8.41M' or '$750k'."""
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    return f"${value / 1000:.0f}k"


def headline_total(output: ProjectOutput) -> HeadlineTotal:
    """Client investment when a TI allowance applies, otherwise the grand total."""
    if output.ti_allowance_total > 0:
        return HeadlineTotal(
            label="Client Investment",
            total=output.client_total,
            per_rsf=output.client_total_per_rsf,
        )
    return HeadlineTotal(
        label="Grand Total",
        total=output.grand_total,
        per_rsf=output.grand_total_per_rsf,
    )


def category_share(result: CategoryResult, output: ProjectOutput) -> float:
    """Percent of the subtotal taken by one category."""
    if output.subtotal == 0:
        return 0.0
    return result.total_cost / output.subtotal * 100


def largest_category(output: ProjectOutput) -> Tuple[Optional[CategoryResult], float]:
    """Category with the highest total cost and its share of the subtotal."""
    if not output.categories:
        return None, 0.0
    largest = max(output.categories, key=lambda c: c.total_cost)
    return largest, category_share(largest, output)


def build_presentation_summary(inputs: ProjectInput, output: ProjectOutput) -> Dict[str, Any]:
    """Assemble the client-facing summary for one estimate.

    Args:
        inputs: Project parameters.
        output: Engine output for those parameters.

    Returns:
        camelCase dict ready for JSON.
    """
    headline = headline_total(output)
    largest, largest_share = largest_category(output)

    rows: List[Dict[str, Any]] = [
        {
            "category": result.category,
            "costPerRSF": result.cost_per_rsf,
            "totalCost": result.total_cost,
            "sharePercent": category_share(result, output),
        }
        for result in output.categories
    ]

    return {
        "projectName": inputs.project_name,
        "projectSize": inputs.project_size,
        "floors": inputs.floors,
        "location": inputs.location,
        "uniqueProjectFactor": output.unique_project_factor,
        "headline": {
            "label": headline.label,
            "total": headline.total,
            "perRSF": headline.per_rsf,
            "formatted": format_currency(headline.total),
            "compact": format_compact_currency(headline.total),
        },
        "categories": rows,
        "largestCategory": {
            "category": largest.category if largest else None,
            "sharePercent": largest_share,
        },
        "subtotal": output.subtotal,
        "subtotalPerRSF": output.subtotal / inputs.project_size,
        "contingencyPercent": output.contingency_percent,
        "contingency": output.contingency,
        "grandTotal": output.grand_total,
        "grandTotalPerRSF": output.grand_total_per_rsf,
        "tiAllowanceTotal": output.ti_allowance_total,
        "clientTotal": output.client_total,
    }
