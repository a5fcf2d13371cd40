"""Earned manhour calculation.

Mirrors the percent-complete calculation but returns absolute hours: the
component's budgeted hours times its weighted completion.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from progresstrack.earned_value.progress import (
    HUNDRED,
    ZERO,
    bucket_percentages,
    round_half_up,
    to_decimal,
    weighted_percent,
)
from progresstrack.earned_value.templates import MilestoneBucket, TemplateLike


def compute_earned_hours(
    budgeted_hours: Decimal | float | int | None,
    template: TemplateLike | None,
    current_milestones: Mapping[str, Any] | None,
) -> Decimal:
    """Earned hours for one component, rounded half-up to two decimals.

    Returns 0 when no budgeted hours exist (no allocation under the active
    budget); that is a normal state, not an error.

    Example:
        >>> from progresstrack.earned_value.templates import parse_milestones, DEFAULT_TEMPLATES
        >>> weld = parse_milestones(DEFAULT_TEMPLATES["field_weld"])
        >>> compute_earned_hours(10, weld, {"Fit-Up": True, "Weld Made": True})
        Decimal('7.00')
    """
    budgeted = to_decimal(budgeted_hours)
    if budgeted is None or budgeted <= 0:
        return round_half_up(ZERO)

    percent = weighted_percent(template, current_milestones)
    return round_half_up(budgeted * percent / HUNDRED)


def compute_earned_by_bucket(
    budgeted_hours: Decimal | float | int | None,
    template: TemplateLike | None,
    current_milestones: Mapping[str, Any] | None,
) -> dict[MilestoneBucket, tuple[Decimal, Decimal]]:
    """Budgeted and earned hours per reporting bucket (unrounded).

    Returns:
        Mapping of bucket to ``(budgeted_hours, earned_hours)``. Empty when
        there are no budgeted hours.
    """
    budgeted = to_decimal(budgeted_hours)
    if budgeted is None or budgeted <= 0:
        return {}

    return {
        bucket: (budgeted * weight / HUNDRED, budgeted * earned / HUNDRED)
        for bucket, (weight, earned) in bucket_percentages(template, current_milestones).items()
    }
