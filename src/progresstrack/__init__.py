"""Progresstrack - Milestone progress and manhour earned-value engine.

This package tracks construction-project progress by decomposing each
component into weighted completion milestones, and converts that progress
into labor-hour earned value against a versioned project budget.
"""

__version__ = "0.1.0"
