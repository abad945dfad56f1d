"""Generative checking, stream extraction, merging and issue actions."""

from .actions import AppliedSuggestion, apply_suggestion, dismiss_issue, locate_issue
from .generative_check import GenerativeChecker, GenerativeResult, parse_issue_payload
from .hybrid import CheckResult, HybridChecker
from .merge import dedupe_issues, merge_issues, sort_by_position
from .stream_extractor import IncrementalIssueExtractor, extract_issues, iter_issues

__all__ = [
    "AppliedSuggestion",
    "apply_suggestion",
    "dismiss_issue",
    "locate_issue",
    "GenerativeChecker",
    "GenerativeResult",
    "parse_issue_payload",
    "CheckResult",
    "HybridChecker",
    "dedupe_issues",
    "merge_issues",
    "sort_by_position",
    "IncrementalIssueExtractor",
    "extract_issues",
    "iter_issues",
]
