"""Weighted percent-complete calculation.

Pure functions: given a template and a component's current milestone map,
return the weighted percent complete. Used wherever progress is displayed and
as the basis for earned manhours.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from progresstrack.earned_value.templates import (
    MilestoneBucket,
    MilestoneDefinition,
    TemplateLike,
    bucket_for,
    definitions_of,
)
from progresstrack.exceptions import MilestoneValueError

HUNDRED = Decimal("100")
ZERO = Decimal("0")
CENT = Decimal("0.01")

MilestoneValue = bool | int | float | Decimal | None


def round_half_up(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round to ``quantum`` using round-half-up (not banker's rounding)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal | None:
    """Convert a numeric-ish value to a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def completion_fraction(definition: MilestoneDefinition, raw: MilestoneValue | str) -> Decimal:
    """Return how much of a milestone is complete, as a fraction 0..1.

    Discrete milestones count fully when the stored value is truthy (``True``,
    or any positive number such as the legacy ``1`` or the current ``100``).
    Partial milestones scale by ``value / 100`` and are clamped to 0..100.
    A boolean stored against a partial milestone reads as 0 or 100.
    """
    if raw is None:
        return ZERO
    if isinstance(raw, bool):
        return Decimal(1) if raw else ZERO

    number = to_decimal(raw)
    if number is None:
        return ZERO

    if not definition.is_partial:
        return Decimal(1) if number > 0 else ZERO

    clamped = min(max(number, ZERO), HUNDRED)
    return clamped / HUNDRED


def weighted_percent(
    template: TemplateLike | None,
    current_milestones: Mapping[str, Any] | None,
) -> Decimal:
    """Unrounded weighted percent complete (0..100).

    Milestones present in ``current_milestones`` but absent from the template
    are ignored, so a component survives template version changes.
    """
    definitions = definitions_of(template)
    if not definitions or not current_milestones:
        return ZERO

    total = ZERO
    for definition in definitions:
        raw = current_milestones.get(definition.name)
        total += definition.weight * completion_fraction(definition, raw)
    return min(total, HUNDRED)


def compute_percent_complete(
    template: TemplateLike | None,
    current_milestones: Mapping[str, Any] | None,
) -> Decimal:
    """Weighted percent complete, rounded half-up to two decimals.

    A missing template yields 0 rather than an error.

    Example:
        >>> defs = [MilestoneDefinition(name="Receive", weight=5, order=1),
        ...         MilestoneDefinition(name="Fabricate", weight=95, order=2, is_partial=True)]
        >>> compute_percent_complete(defs, {"Receive": True, "Fabricate": 50})
        Decimal('52.50')
    """
    return round_half_up(weighted_percent(template, current_milestones))


def bucket_percentages(
    template: TemplateLike | None,
    current_milestones: Mapping[str, Any] | None,
) -> dict[MilestoneBucket, tuple[Decimal, Decimal]]:
    """Split progress by reporting bucket.

    Returns:
        Mapping of bucket to ``(bucket_weight, earned_weight)`` where both are
        in percentage points of the whole component. Buckets with no
        milestones in the template are omitted.
    """
    result: dict[MilestoneBucket, tuple[Decimal, Decimal]] = {}
    milestones = current_milestones or {}
    for definition in definitions_of(template):
        bucket = bucket_for(definition.name)
        weight, earned = result.get(bucket, (ZERO, ZERO))
        fraction = completion_fraction(definition, milestones.get(definition.name))
        result[bucket] = (weight + definition.weight, earned + definition.weight * fraction)
    return result


def normalize_milestone_value(definition: MilestoneDefinition, value: Any) -> Decimal:
    """Validate a milestone value for writing and return it on the 0-100 scale.

    Discrete milestones accept booleans or the numbers 0, 1 and 100 and are
    stored as 0 or 100. Partial milestones accept numbers from 0 to 100 (a
    boolean reads as 0 or 100).

    Raises:
        MilestoneValueError: If the value does not fit the milestone's kind.
    """
    if isinstance(value, bool):
        return HUNDRED if value else ZERO

    number = to_decimal(value)
    if number is None:
        raise MilestoneValueError(
            f"Milestone {definition.name!r} requires a numeric or boolean value, got {value!r}"
        )

    if not definition.is_partial:
        if number not in (ZERO, Decimal(1), HUNDRED):
            raise MilestoneValueError(
                f"Discrete milestone {definition.name!r} accepts true/false, 0, 1 or 100, got {value!r}"
            )
        return HUNDRED if number > 0 else ZERO

    if number < ZERO or number > HUNDRED:
        raise MilestoneValueError(
            f"Partial milestone {definition.name!r} must be between 0 and 100, got {value!r}"
        )
    return number


def stored_milestone_value(value: Decimal) -> int | float:
    """JSON-friendly number for a 0-100 value (milestone value or weight)."""
    return int(value) if value == value.to_integral_value() else float(value)
