"""
Side-by-side comparison of saved estimates.

Identifies the lowest and highest grand totals, lines up category costs
across estimates, and produces short plain-language insights:
- savings between the cheapest and most expensive option
- categories where allocations differ by more than 20%
- a note when all totals are within 5% of each other
"""

from dataclasses import dataclass, field
from typing import Dict, List

import structlog

from config.errors import ErrorCode, ValidationError
from models.project import SavedEstimate
from services.presentation_service import format_currency

logger = structlog.get_logger(__name__)

CATEGORY_DIFF_THRESHOLD_PERCENT = 20.0
SIMILAR_TOTALS_THRESHOLD_PERCENT = 5.0
MAX_INSIGHTS = 5


@dataclass
class Insight:
    """One comparison insight (type is savings, warning or info)."""

    type: str
    text: str


@dataclass
class CategoryComparison:
    """Total cost of one category in each compared estimate (0 if absent)."""

    category: str
    values: List[float]

    @property
    def min_value(self) -> float:
        return min(self.values)

    @property
    def max_value(self) -> float:
        return max(self.values)


@dataclass
class ComparisonResult:
    """Complete comparison of two or more estimates."""

    estimate_ids: List[str]
    estimate_names: List[str]
    lowest_index: int
    highest_index: int
    min_total: float
    max_total: float
    categories: List[CategoryComparison] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "estimateIds": self.estimate_ids,
            "estimateNames": self.estimate_names,
            "lowestIndex": self.lowest_index,
            "highestIndex": self.highest_index,
            "minTotal": self.min_total,
            "maxTotal": self.max_total,
            "categories": [
                {"category": c.category, "values": c.values}
                for c in self.categories
            ],
            "insights": [{"type": i.type, "text": i.text} for i in self.insights],
        }


def percent_diff(base: float, compare: float) -> float:
    """Percent change from base to compare; 0 when base is 0."""
    if base == 0:
        return 0.0
    return (compare - base) / base * 100


def _category_total(estimate: SavedEstimate, category: str) -> float:
    if estimate.computed_output is None:
        return 0.0
    result = estimate.computed_output.get_category(category)
    return result.total_cost if result else 0.0


def compare_estimates(estimates: List[SavedEstimate]) -> ComparisonResult:
    """Compare saved estimates side by side.

    Categories are taken from the first estimate's output, in its order.

    Args:
        estimates: Two or more saved estimates.

    Returns:
        ComparisonResult with totals, category matrix and up to five insights.

    Raises:
        ValidationError: If fewer than two estimates are given.
    """
    if len(estimates) < 2:
        raise ValidationError(
            message="At least two estimates are required for a comparison",
            field="estimateIds",
            details={"count": len(estimates)},
            code=ErrorCode.COMPARISON_FAILED
        )

    totals = [estimate.grand_total for estimate in estimates]
    min_total = min(totals)
    max_total = max(totals)
    lowest_index = totals.index(min_total)
    highest_index = totals.index(max_total)

    base_output = estimates[0].computed_output
    category_names = [c.category for c in base_output.categories] if base_output else []
    categories = [
        CategoryComparison(
            category=name,
            values=[_category_total(estimate, name) for estimate in estimates],
        )
        for name in category_names
    ]

    insights: List[Insight] = []

    if max_total > min_total:
        savings = max_total - min_total
        insights.append(Insight(
            type="savings",
            text=(
                f"{estimates[lowest_index].name} saves {format_currency(savings)} "
                f"({abs(percent_diff(max_total, min_total)):.1f}% less) compared to "
                f"{estimates[highest_index].name}"
            ),
        ))

    for comparison in categories:
        low, high = comparison.min_value, comparison.max_value
        spread = percent_diff(low, high)
        if high > 0 and spread > CATEGORY_DIFF_THRESHOLD_PERCENT:
            low_name = estimates[comparison.values.index(low)].name
            high_name = estimates[comparison.values.index(high)].name
            insights.append(Insight(
                type="info",
                text=f"{comparison.category}: {high_name} allocates {abs(spread):.0f}% more than {low_name}",
            ))

    total_range = percent_diff(min_total, max_total)
    if total_range < SIMILAR_TOTALS_THRESHOLD_PERCENT:
        insights.append(Insight(
            type="info",
            text=(
                f"All options are within {total_range:.1f}% of each other - "
                "differences are primarily in how the budget is allocated"
            ),
        ))

    logger.info(
        "estimates_compared",
        count=len(estimates),
        min_total=round(min_total, 2),
        max_total=round(max_total, 2),
        insight_count=len(insights),
    )

    return ComparisonResult(
        estimate_ids=[estimate.id or "" for estimate in estimates],
        estimate_names=[estimate.name for estimate in estimates],
        lowest_index=lowest_index,
        highest_index=highest_index,
        min_total=min_total,
        max_total=max_total,
        categories=categories,
        insights=insights[:MAX_INSIGHTS],
    )
