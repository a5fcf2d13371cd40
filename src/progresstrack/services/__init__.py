"""Database-backed operations of the earned value engine.

- Milestone template store
- Budget version manager
- Reactive earned-hours recalculation
- Milestone updates
- Manhour reporting
"""

from progresstrack.services.budgets import (
    BudgetCreationResult,
    create_budget,
    get_active_budget,
    list_budget_versions,
)
from progresstrack.services.milestones import MilestoneUpdateResult, update_component_milestone
from progresstrack.services.recalculation import (
    RecalculationSummary,
    on_component_milestones_changed,
    recalculate_project,
)
from progresstrack.services.reporting import (
    GroupBy,
    GroupSummary,
    ManhourSummary,
    get_project_manhour_summary,
    summarize_by,
    verify_allocations,
)
from progresstrack.services.templates import (
    create_template_version,
    get_template,
    list_templates,
    seed_default_templates,
)

__all__ = [
    "BudgetCreationResult",
    "create_budget",
    "get_active_budget",
    "list_budget_versions",
    "MilestoneUpdateResult",
    "update_component_milestone",
    "RecalculationSummary",
    "on_component_milestones_changed",
    "recalculate_project",
    "GroupBy",
    "GroupSummary",
    "ManhourSummary",
    "get_project_manhour_summary",
    "summarize_by",
    "verify_allocations",
    "create_template_version",
    "get_template",
    "list_templates",
    "seed_default_templates",
]
