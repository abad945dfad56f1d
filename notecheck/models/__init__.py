"""Public model exports for the project.

Tests and other modules import from here, e.g.
``from notecheck.models import Issue, IssueKind``.
"""

from __future__ import annotations

from .enums import ConfidenceLevel, IssueKind, Origin
from .issue import DEFAULT_REASON, Issue, Position

__all__ = [
    "Issue",
    "Position",
    "IssueKind",
    "Origin",
    "ConfidenceLevel",
    "DEFAULT_REASON",
]
