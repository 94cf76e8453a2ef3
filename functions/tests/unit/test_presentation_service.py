"""Unit tests for client-facing presentation helpers."""

import pytest

from services.cost_engine import compute_project_costs
from services.presentation_service import (
    QualityLevel,
    build_presentation_summary,
    category_share,
    format_compact_currency,
    format_currency,
    get_quality_label,
    get_slider_quality_labels,
    headline_total,
    largest_category,
)


class TestQualityLabels:
    """Tests for slider quality labels."""

    @pytest.mark.parametrize("position,expected", [
        (0, QualityLevel.BASIC),
        (20, QualityLevel.BASIC),
        (21, QualityLevel.STANDARD),
        (40, QualityLevel.STANDARD),
        (60, QualityLevel.ENHANCED),
        (80, QualityLevel.PREMIUM),
        (81, QualityLevel.LUXURY),
        (100, QualityLevel.LUXURY),
    ])
    def test_boundaries(self, position, expected):
        assert get_quality_label(position) == expected

    def test_labels_for_every_slider(self):
        labels = get_slider_quality_labels({"levelOfFinish": 95})

        assert labels["levelOfFinish"] == "Luxury"
        assert labels["programRequirements"] == "Enhanced"
        assert len(labels) == 14


class TestCurrencyFormatting:
    """Tests for currency strings."""

    def test_format_currency(self):
        assert format_currency(1234567.8) == "$1,234,568"
        assert format_currency(0) == "$0"

    def test_format_compact_currency(self):
        assert format_compact_currency(8_410_000) == "$8.41M"
        assert format_compact_currency(750_000) == "$750k"


class TestHeadline:
    """Tests for the headline total and category shares."""

    def test_grand_total_without_ti(self, sample_output):
        headline = headline_total(sample_output)

        assert headline.label == "Grand Total"
        assert headline.total == sample_output.grand_total

    def test_client_investment_with_ti(self, sample_inputs_with_ti):
        output = compute_project_costs(sample_inputs_with_ti)

        headline = headline_total(output)

        assert headline.label == "Client Investment"
        assert headline.total == output.client_total
        assert headline.per_rsf == output.client_total_per_rsf

    def test_shares_sum_to_hundred(self, sample_output):
        shares = [category_share(c, sample_output) for c in sample_output.categories]
        assert sum(shares) == pytest.approx(100.0)

    def test_largest_category_is_construction(self, sample_output):
        largest, share = largest_category(sample_output)

        assert largest.category == "Construction Costs"
        assert 70 < share < 80


class TestPresentationSummary:
    """Tests for build_presentation_summary."""

    def test_summary(self, sample_inputs, sample_output):
        summary = build_presentation_summary(sample_inputs, sample_output)

        assert summary["projectName"] == "HQ Build-Out"
        assert summary["headline"]["label"] == "Grand Total"
        assert summary["headline"]["formatted"] == format_currency(sample_output.grand_total)
        assert len(summary["categories"]) == 6
        assert summary["largestCategory"]["category"] == "Construction Costs"
        assert summary["subtotalPerRSF"] == pytest.approx(sample_output.subtotal / 25000)
