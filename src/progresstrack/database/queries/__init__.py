"""Database query functions for Progresstrack.

This module provides async query functions for all database entities:
- Project lookup and row locking
- Component reads
- Milestone template versions
- Budget versions and activation
- Component allocations
"""

from progresstrack.database.queries.allocation import (
    bulk_insert_allocations,
    find_cross_project_allocations,
    get_allocation,
    list_allocations_with_components,
    lock_allocation,
)
from progresstrack.database.queries.budget import (
    count_active_budgets,
    deactivate_budgets,
    get_active_budget,
    get_max_version_number,
    insert_budget,
    list_budgets,
)
from progresstrack.database.queries.component import (
    create_component,
    get_component,
    list_components,
    lock_component,
)
from progresstrack.database.queries.project import (
    create_project,
    lock_project,
)
from progresstrack.database.queries.template import (
    get_latest_version_number,
    get_template_version,
    insert_template,
    list_latest_templates,
    list_template_versions,
)

__all__ = [
    # Allocation
    "bulk_insert_allocations",
    "find_cross_project_allocations",
    "get_allocation",
    "list_allocations_with_components",
    "lock_allocation",
    # Budget
    "count_active_budgets",
    "deactivate_budgets",
    "get_active_budget",
    "get_max_version_number",
    "insert_budget",
    "list_budgets",
    # Component
    "create_component",
    "get_component",
    "list_components",
    "lock_component",
    # Project
    "create_project",
    "lock_project",
    # Template
    "get_latest_version_number",
    "get_template_version",
    "insert_template",
    "list_latest_templates",
    "list_template_versions",
]
