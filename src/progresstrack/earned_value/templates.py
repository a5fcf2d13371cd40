"""Milestone template definitions and validation.

A template is an ordered list of milestone definitions for one component
category. Weights are percentages held as ``Decimal`` so that the
sum-to-100 check is exact; floats are never summed here.

The default (system) templates seeded for new installations live at the
bottom of this module.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from progresstrack.exceptions import TemplateWeightError

TOTAL_WEIGHT = Decimal("100")


class MilestoneDefinition(BaseModel):
    """One weighted step of work within a template.

    Attributes:
        name: Milestone name, unique within the template.
        weight: Share of the component's progress (0-100, two decimals max).
        order: Display/processing order within the template.
        is_partial: True for fractional (0-100) milestones, False for
            complete/incomplete ones.
        requires_secondary_approval: True when completion must be confirmed
            by a second actor (e.g. welder sign-off).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=100)
    weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    order: int = Field(..., ge=0)
    is_partial: bool = False
    requires_secondary_approval: bool = False


MilestoneList = TypeAdapter(list[MilestoneDefinition])


class HasDefinitions(Protocol):
    """Anything exposing an ordered list of milestone definitions."""

    @property
    def definitions(self) -> list[MilestoneDefinition]: ...


TemplateLike = HasDefinitions | Sequence[MilestoneDefinition]


def definitions_of(template: TemplateLike | None) -> list[MilestoneDefinition]:
    """Return the definitions of a template object or a plain list, in order."""
    if template is None:
        return []
    if hasattr(template, "definitions"):
        items = list(template.definitions)
    else:
        items = list(template)
    return sorted(items, key=lambda d: d.order)


def parse_milestones(raw: Iterable[dict[str, Any] | MilestoneDefinition]) -> list[MilestoneDefinition]:
    """Coerce raw dicts (JSON column contents, API payloads) into definitions."""
    return MilestoneList.validate_python(list(raw))


def validate_template(
    milestones: Iterable[dict[str, Any] | MilestoneDefinition],
) -> list[MilestoneDefinition]:
    """Validate a milestone list and return it as ordered definitions.

    Args:
        milestones: Milestone definitions or equivalent dicts.

    Returns:
        The definitions sorted by ``order``.

    Raises:
        TemplateWeightError: If a definition is malformed, the list is empty,
            names repeat, or the weights do not sum to exactly 100.
    """
    try:
        definitions = parse_milestones(milestones)
    except ValidationError as exc:
        raise TemplateWeightError(
            f"Invalid milestone definition: {exc.errors()[0]['msg']}", reason="invalid_definition"
        ) from exc
    if not definitions:
        raise TemplateWeightError("Template must define at least one milestone", reason="empty")

    seen: set[str] = set()
    for definition in definitions:
        key = definition.name.casefold()
        if key in seen:
            raise TemplateWeightError(
                f"Duplicate milestone name: {definition.name}", reason="duplicate_name"
            )
        seen.add(key)

    total = sum((d.weight for d in definitions), Decimal("0"))
    if total != TOTAL_WEIGHT:
        raise TemplateWeightError(
            f"Milestone weights must sum to 100, got {total}", total=total
        )

    return sorted(definitions, key=lambda d: d.order)


class MilestoneBucket(str, enum.Enum):
    """Reporting buckets that milestones roll up into."""

    receive = "receive"
    install = "install"
    punch = "punch"
    test = "test"
    restore = "restore"


_BUCKET_NAMES: dict[str, MilestoneBucket] = {
    "receive": MilestoneBucket.receive,
    "erect": MilestoneBucket.install,
    "connect": MilestoneBucket.install,
    "install": MilestoneBucket.install,
    "fabricate": MilestoneBucket.install,
    "support": MilestoneBucket.install,
    "fit-up": MilestoneBucket.install,
    "fitup complete": MilestoneBucket.install,
    "weld made": MilestoneBucket.install,
    "weld complete": MilestoneBucket.install,
    "punch": MilestoneBucket.punch,
    "punch complete": MilestoneBucket.punch,
    "accepted": MilestoneBucket.punch,
    "test": MilestoneBucket.test,
    "hydrotest": MilestoneBucket.test,
    "pressure test": MilestoneBucket.test,
    "test complete": MilestoneBucket.test,
    "restore": MilestoneBucket.restore,
    "insulate": MilestoneBucket.restore,
    "paint": MilestoneBucket.restore,
}


def bucket_for(milestone_name: str) -> MilestoneBucket:
    """Map a milestone name to its reporting bucket (install when unknown)."""
    return _BUCKET_NAMES.get(milestone_name.strip().casefold(), MilestoneBucket.install)


def _standard(receive: int = 10, install: int = 60, punch: int = 10, test: int = 15, restore: int = 5) -> list[dict[str, Any]]:
    return [
        {"name": "Receive", "weight": receive, "order": 1},
        {"name": "Install", "weight": install, "order": 2},
        {"name": "Punch", "weight": punch, "order": 3},
        {"name": "Test", "weight": test, "order": 4},
        {"name": "Restore", "weight": restore, "order": 5},
    ]


DEFAULT_TEMPLATES: dict[str, list[dict[str, Any]]] = {
    "spool": [
        {"name": "Receive", "weight": 5, "order": 1},
        {"name": "Erect", "weight": 40, "order": 2},
        {"name": "Connect", "weight": 40, "order": 3},
        {"name": "Punch", "weight": 5, "order": 4},
        {"name": "Test", "weight": 5, "order": 5},
        {"name": "Restore", "weight": 5, "order": 6},
    ],
    "field_weld": [
        {"name": "Fit-Up", "weight": 10, "order": 1},
        {"name": "Weld Made", "weight": 60, "order": 2, "requires_secondary_approval": True},
        {"name": "Punch", "weight": 10, "order": 3},
        {"name": "Test", "weight": 15, "order": 4},
        {"name": "Restore", "weight": 5, "order": 5},
    ],
    "support": _standard(),
    "valve": _standard(),
    "fitting": _standard(),
    "flange": _standard(),
    "instrument": _standard(),
    "tubing": _standard(),
    "hose": _standard(),
    "misc_component": _standard(),
    "threaded_pipe": [
        {"name": "Fabricate", "weight": 16, "order": 1, "is_partial": True},
        {"name": "Install", "weight": 16, "order": 2, "is_partial": True},
        {"name": "Erect", "weight": 16, "order": 3, "is_partial": True},
        {"name": "Connect", "weight": 16, "order": 4, "is_partial": True},
        {"name": "Support", "weight": 16, "order": 5, "is_partial": True},
        {"name": "Punch", "weight": 5, "order": 6},
        {"name": "Test", "weight": 10, "order": 7},
        {"name": "Restore", "weight": 5, "order": 8},
    ],
}
