from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notecheck.models import (
    DEFAULT_REASON,
    ConfidenceLevel,
    Issue,
    IssueKind,
    Origin,
    Position,
)


def test_enum_values() -> None:
    assert IssueKind.all_values() == ["spelling", "terminology", "grammar"]
    assert Origin.all_values() == ["deterministic", "generative"]
    assert set(ConfidenceLevel.all_values()) == {"low", "medium", "high"}


def test_from_llm_response_applies_defaults() -> None:
    issue = Issue.from_llm_response({"word": "teh", "suggestion": "the"}, issue_id="err-0")

    assert issue.word == "teh"
    assert issue.suggestions == ("the",)
    assert issue.kind == IssueKind.SPELLING
    assert issue.reason == DEFAULT_REASON
    assert issue.origin == Origin.GENERATIVE
    assert issue.confidence == ConfidenceLevel.MEDIUM
    assert issue.confidence_score == pytest.approx(0.8)
    assert issue.position is None
    assert issue.issue_id == "err-0"


@pytest.mark.parametrize(
    "confidence, score",
    [("high", 0.95), ("medium", 0.8), ("low", 0.6), ("HIGH", 0.95)],
)
def test_generative_confidence_scores(confidence: str, score: float) -> None:
    issue = Issue.from_llm_response(
        {"word": "gtm", "suggestion": "go-to-market", "confidence": confidence}
    )
    assert issue.confidence_score == pytest.approx(score)


def test_numeric_confidence_is_mapped_to_a_level() -> None:
    issue = Issue.from_llm_response({"word": "x1", "suggestion": "y", "confidence": 92})
    assert issue.confidence == ConfidenceLevel.HIGH
    issue = Issue.from_llm_response({"word": "x1", "suggestion": "y", "confidence": 0.5})
    assert issue.confidence == ConfidenceLevel.LOW


def test_dictionary_issue_has_fixed_score_and_position() -> None:
    issue = Issue.from_dictionary_match("tset", 10, 14, ["test", "set"])

    assert issue.origin == Origin.DETERMINISTIC
    assert issue.kind == IssueKind.SPELLING
    assert issue.confidence is None
    assert issue.confidence_score == pytest.approx(0.7)
    assert issue.position == Position(start=10, end=14)


def test_suggestions_are_merged_and_deduplicated() -> None:
    issue = Issue.from_llm_response(
        {
            "word": "recieve",
            "suggestion": "receive",
            "suggestions": ["receive", " relieve ", "", None],
        }
    )
    assert issue.suggestions == ("receive", "relieve")


def test_kind_aliases_and_unknown_kinds() -> None:
    assert (
        Issue.from_llm_response({"word": "a1", "suggestion": "b", "type": "term"}).kind
        == IssueKind.TERMINOLOGY
    )
    assert (
        Issue.from_llm_response({"word": "a1", "suggestion": "b", "type": "Grammar"}).kind
        == IssueKind.GRAMMAR
    )
    assert (
        Issue.from_llm_response({"word": "a1", "suggestion": "b", "type": "weird"}).kind
        == IssueKind.SPELLING
    )


@pytest.mark.parametrize(
    "payload",
    [
        {"suggestion": "the"},
        {"word": "   ", "suggestion": "the"},
        {"word": "teh"},
        {"word": "teh", "suggestion": ""},
        ["teh", "the"],
        "teh",
    ],
)
def test_invalid_llm_payloads_are_rejected(payload: object) -> None:
    with pytest.raises(ValueError):
        Issue.from_llm_response(payload)


def test_blank_reason_falls_back_to_default() -> None:
    issue = Issue.from_llm_response({"word": "teh", "suggestion": "the", "reason": "  "})
    assert issue.reason == DEFAULT_REASON


def test_records_are_frozen() -> None:
    issue = Issue.from_llm_response({"word": "teh", "suggestion": "the"})
    with pytest.raises(ValidationError):
        issue.word = "other"  # type: ignore[misc]


def test_identity_is_case_insensitive() -> None:
    first = Issue.from_llm_response({"word": "Teh", "suggestion": "The"})
    second = Issue.from_dictionary_match("teh", 0, 3, ["the"])
    assert first.identity == second.identity == "teh"


def test_with_id_returns_a_copy() -> None:
    issue = Issue.from_llm_response({"word": "teh", "suggestion": "the"}, issue_id="err-3")
    renamed = issue.with_id("err-0")

    assert renamed.issue_id == "err-0"
    assert issue.issue_id == "err-3"


def test_event_payload_round_trips() -> None:
    issue = Issue.from_dictionary_match("teh", 4, 7, ["the"], issue_id="err-0")
    payload = issue.to_event_payload()

    assert payload["origin"] == "deterministic"
    assert payload["kind"] == "spelling"
    assert payload["confidence_score"] == pytest.approx(0.7)
    assert payload["position"] == {"start": 4, "end": 7}
    assert Issue.model_validate(payload) == issue


def test_position_requires_positive_span() -> None:
    with pytest.raises(ValidationError):
        Position(start=5, end=5)
    with pytest.raises(ValidationError):
        Position(start=-1, end=2)
