"""Earned value calculation engine.

Pure functions with no database access:
- Template validation and default templates
- Weighted percent-complete
- Nominal size parsing and dimension weights
- Proportional manhour distribution
- Earned manhours
"""

from progresstrack.earned_value.distributor import (
    ComponentAllocation,
    ComponentSnapshot,
    DistributionResult,
    DistributionWarning,
    distribute,
)
from progresstrack.earned_value.earned import compute_earned_by_bucket, compute_earned_hours
from progresstrack.earned_value.progress import (
    bucket_percentages,
    completion_fraction,
    compute_percent_complete,
    normalize_milestone_value,
    round_half_up,
    stored_milestone_value,
    weighted_percent,
)
from progresstrack.earned_value.sizing import ParsedSize, parse_size
from progresstrack.earned_value.templates import (
    DEFAULT_TEMPLATES,
    MilestoneBucket,
    MilestoneDefinition,
    bucket_for,
    parse_milestones,
    validate_template,
)
from progresstrack.earned_value.weights import (
    DEFAULT_POLICY,
    CalculationBasis,
    WeightPolicy,
    WeightResult,
    compute_weight,
)

__all__ = [
    # Templates
    "DEFAULT_TEMPLATES",
    "MilestoneBucket",
    "MilestoneDefinition",
    "bucket_for",
    "parse_milestones",
    "validate_template",
    # Progress
    "bucket_percentages",
    "completion_fraction",
    "compute_percent_complete",
    "normalize_milestone_value",
    "round_half_up",
    "stored_milestone_value",
    "weighted_percent",
    # Sizing and weights
    "ParsedSize",
    "parse_size",
    "DEFAULT_POLICY",
    "CalculationBasis",
    "WeightPolicy",
    "WeightResult",
    "compute_weight",
    # Distribution
    "ComponentAllocation",
    "ComponentSnapshot",
    "DistributionResult",
    "DistributionWarning",
    "distribute",
    # Earned hours
    "compute_earned_by_bucket",
    "compute_earned_hours",
]
