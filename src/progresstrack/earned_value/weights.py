"""Dimension weight function.

Derives a relative labor-intensity weight for a component from its category
and identity key. The function is pure: the same inputs always produce the
same weight, which keeps budget distributions reproducible.

Policy:
    - no usable size (absent, empty, sentinel): baseline weight
    - simple size: diameter ** exponent
    - reducer ``AxB``: mean(A, B) ** exponent
    - linear-run category with a length: diameter * length * length_factor
    - unparsable size: baseline weight plus a warning
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from progresstrack.earned_value.sizing import ParsedSize, parse_size

if TYPE_CHECKING:
    from progresstrack.config import ManhourConfig


class CalculationBasis(str, enum.Enum):
    """How a component's weight (and therefore its budget share) was derived."""

    dimension = "dimension"
    linear_length = "linear_length"
    fixed = "fixed"
    manual_override = "manual_override"


@dataclass(frozen=True)
class WeightPolicy:
    """Constants used by :func:`compute_weight` and the distributor.

    ``conservation_tolerance_per_component`` bounds the rounding drift a
    distribution may show before it is logged as suspect.
    """

    baseline_weight: float = 1.0
    size_exponent: float = 1.5
    length_factor: float = 0.1
    linear_categories: frozenset[str] = frozenset({"threaded_pipe", "pipe"})
    conservation_tolerance_per_component: float = 0.01

    @classmethod
    def from_config(cls, config: ManhourConfig) -> WeightPolicy:
        return cls(
            baseline_weight=config.baseline_weight,
            size_exponent=config.size_exponent,
            length_factor=config.length_factor,
            linear_categories=frozenset(config.linear_categories),
            conservation_tolerance_per_component=config.conservation_tolerance_per_component,
        )

    def is_linear(self, category: str) -> bool:
        return _normalize_category(category) in self.linear_categories


DEFAULT_POLICY = WeightPolicy()


@dataclass(frozen=True)
class WeightResult:
    """Outcome of a weight computation.

    Attributes:
        weight: Relative work weight (> 0).
        basis: Which rule produced the weight.
        trace: Inputs used, recorded on the allocation for auditing.
        warning: Set when the input looked wrong (unparsable size, bad length).
    """

    weight: float
    basis: CalculationBasis
    trace: dict[str, Any] = field(default_factory=dict)
    warning: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.basis is CalculationBasis.fixed


def _normalize_category(category: str) -> str:
    return category.strip().lower().replace(" ", "_").replace("-", "_")


def _lookup(key: Mapping[str, Any], name: str) -> tuple[bool, Any]:
    if name in key:
        return True, key[name]
    for k, v in key.items():
        if isinstance(k, str) and k.lower() == name:
            return True, v
    return False, None


def effective_identity_key(
    identity_key: Mapping[str, Any] | None,
    attributes: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge attribute-held size/footage into the identity key for aggregates.

    Aggregate pipe components (identity key carries ``pipe_id``) keep their
    size and ``total_linear_feet`` in the attributes mapping instead.
    """
    effective = dict(identity_key or {})
    if "pipe_id" not in effective or not attributes:
        return effective
    if "size" in attributes:
        effective["size"] = attributes["size"]
    if "total_linear_feet" in attributes:
        effective["linear_feet"] = attributes["total_linear_feet"]
    return effective


def _parse_length(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def _fixed(policy: WeightPolicy, reason: str, size: Any = None, warning: str | None = None) -> WeightResult:
    trace: dict[str, Any] = {"reason": reason}
    if size is not None:
        trace["size"] = str(size)
    return WeightResult(
        weight=policy.baseline_weight,
        basis=CalculationBasis.fixed,
        trace=trace,
        warning=warning,
    )


def _dimension_trace(parsed: ParsedSize) -> dict[str, Any]:
    if parsed.is_reducer:
        return {
            "size": parsed.raw,
            "diameter1": parsed.first,
            "diameter2": parsed.second,
            "average_diameter": parsed.diameter,
        }
    return {"size": parsed.raw, "diameter": parsed.diameter}


def compute_weight(
    category: str,
    identity_key: Mapping[str, Any] | None,
    attributes: Mapping[str, Any] | None = None,
    policy: WeightPolicy = DEFAULT_POLICY,
) -> WeightResult:
    """Compute the relative work weight for a component.

    Args:
        category: Component category (e.g. ``valve``, ``threaded_pipe``).
        identity_key: Identity mapping; ``size``/``SIZE`` and, for linear-run
            categories, ``linear_feet``/``LINEAR_FEET`` are read.
        attributes: Optional attribute mapping (used by aggregate pipe).
        policy: Weighting constants.

    Returns:
        WeightResult with a strictly positive weight.

    Example:
        >>> round(compute_weight("valve", {"size": "4"}).weight, 2)
        8.0
        >>> round(compute_weight("valve", {"size": "1X2"}).weight, 4)
        1.8371
    """
    key = effective_identity_key(identity_key, attributes)

    present, size_raw = _lookup(key, "size")
    if not present:
        return _fixed(policy, "no_size_field")
    if size_raw is None or (isinstance(size_raw, str) and not size_raw.strip()):
        return _fixed(policy, "empty_size")

    parsed = parse_size(size_raw)
    if parsed.is_sentinel:
        return _fixed(policy, "no_size", size=size_raw)
    if not parsed.is_valid:
        return _fixed(
            policy,
            "unparsable_size",
            size=size_raw,
            warning=f"Unparsable size {size_raw!r}; baseline weight {policy.baseline_weight} used",
        )

    diameter = float(parsed.diameter)  # type: ignore[arg-type]
    trace = _dimension_trace(parsed)

    if policy.is_linear(category):
        has_length, length_raw = _lookup(key, "linear_feet")
        if has_length and length_raw is not None and str(length_raw).strip() != "":
            length = _parse_length(length_raw)
            if length is not None and length > 0:
                return WeightResult(
                    weight=diameter * length * policy.length_factor,
                    basis=CalculationBasis.linear_length,
                    trace={
                        **trace,
                        "linear_feet": length,
                        "length_factor": policy.length_factor,
                    },
                )
            return WeightResult(
                weight=diameter**policy.size_exponent,
                basis=CalculationBasis.dimension,
                trace={**trace, "reason": "invalid_linear_feet", "linear_feet": str(length_raw)},
                warning=f"Invalid linear length {length_raw!r}; diameter weight used",
            )

    return WeightResult(
        weight=diameter**policy.size_exponent,
        basis=CalculationBasis.dimension,
        trace=trace,
    )
