"""Enumerations used by the issue record model.

Values are serialised verbatim into API responses and stream events, so they
must match the wording the generative prompt asks the model to use.
"""

from __future__ import annotations

from enum import Enum


class IssueKind(str, Enum):
    """Classification of a flagged word.

    The kind drives highlight styling on the caller's side and the merge
    priority between the two checkers.
    """

    SPELLING = "spelling"
    TERMINOLOGY = "terminology"
    GRAMMAR = "grammar"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class Origin(str, Enum):
    """Which checker produced an issue.

    Values:
        DETERMINISTIC: dictionary checker
        GENERATIVE: language model checker
    """

    DETERMINISTIC = "deterministic"
    GENERATIVE = "generative"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class ConfidenceLevel(str, Enum):
    """Self-reported confidence tag returned by the language model."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]
