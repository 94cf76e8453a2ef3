"""Logging setup and estimate summary logging.

Configures structlog once per process and provides a highly visible,
formatted summary of a calculation for local development log streams.
"""

import logging
from typing import Optional

import structlog

from models.calculator import ProjectInput, ProjectOutput

logger = structlog.get_logger()

BANNER_WIDTH = 80
BANNER_CHAR = "═"


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Standard logging level name.
        json_output: Render JSON lines (production) instead of console output.
    """
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )


def _create_banner(text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return BANNER_CHAR * padding + text_with_spaces + BANNER_CHAR * (width - padding - len(text_with_spaces))


def format_estimate_summary(inputs: ProjectInput, output: ProjectOutput) -> str:
    """Render a calculation as a fixed-width text block."""
    lines = [
        _create_banner(f"ESTIMATE: {inputs.project_name or 'Untitled'}"),
        f"║ Size        : {inputs.project_size:,.0f} RSF / {inputs.floors} floor(s) / {inputs.location}",
        f"║ Unique UPF  : {output.unique_project_factor:.3f}x",
    ]
    for result in output.categories:
        lines.append(
            f"║ {result.category:<20}: ${result.cost_per_rsf:>9,.2f}/RSF  ${result.total_cost:>14,.0f}"
        )
    lines.extend([
        f"║ Contingency : {output.contingency_percent * 100:.0f}% = ${output.contingency:,.0f}",
        f"║ Grand Total : ${output.grand_total:,.0f} (${output.grand_total_per_rsf:,.2f}/RSF)",
    ])
    if output.ti_allowance_total > 0:
        lines.append(
            f"║ Client Total: ${output.client_total:,.0f} after ${output.ti_allowance_total:,.0f} TI allowance"
        )
    lines.append(BANNER_CHAR * BANNER_WIDTH)
    return "\n".join(lines)


def log_estimate_summary(
    inputs: ProjectInput,
    output: ProjectOutput,
    estimate_id: Optional[str] = None
) -> None:
    """Log a calculation with a readable banner and a structured event."""
    logger.info(
        "estimate_calculated",
        estimate_id=estimate_id,
        project_name=inputs.project_name,
        project_size=inputs.project_size,
        unique_project_factor=round(output.unique_project_factor, 4),
        grand_total=round(output.grand_total, 2),
        client_total=round(output.client_total, 2),
    )
    logger.debug("estimate_summary", summary="\n" + format_estimate_summary(inputs, output))
