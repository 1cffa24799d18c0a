"""
Domain entities package.
"""

from .action import ActionItem
from .visit import Visit, VisitSummary

__all__ = [
    "ActionItem",
    "Visit",
    "VisitSummary",
]
