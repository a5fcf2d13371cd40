"""Web interface for Progresstrack.

This module provides the FastAPI application exposing templates, budgets,
milestone updates, and manhour reports.
"""

from __future__ import annotations

from progresstrack.web.app import create_app
from progresstrack.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
