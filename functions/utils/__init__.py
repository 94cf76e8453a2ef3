"""Utility modules for the cost estimator functions."""

from utils.logging_config import (
    configure_logging,
    format_estimate_summary,
    log_estimate_summary,
)

__all__ = [
    "configure_logging",
    "format_estimate_summary",
    "log_estimate_summary",
]
