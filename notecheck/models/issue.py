"""Unified issue record shared by the dictionary and language model checkers.

Every checker normalises its output into :class:`Issue` so the merge engine,
the stream protocol and the HTTP layer only ever deal with one shape:
1. Dictionary issues always know their exact position in the source text
2. Language model issues usually do not; their position is recovered later
   from the first whole-word match of ``word``

Records are frozen. Accepting or dismissing an issue replaces the list that
holds it; nothing edits a record in place.
"""

from __future__ import annotations

from typing import Any, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)

from .enums import ConfidenceLevel, IssueKind, Origin

DEFAULT_REASON = "Potential issue"

DETERMINISTIC_CONFIDENCE_SCORE = 0.7
GENERATIVE_CONFIDENCE_SCORES = {
    ConfidenceLevel.HIGH: 0.95,
    ConfidenceLevel.MEDIUM: 0.8,
    ConfidenceLevel.LOW: 0.6,
}

# Labels the model sometimes uses instead of the three documented kinds.
_KIND_ALIASES = {
    "typo": IssueKind.SPELLING,
    "misspelling": IssueKind.SPELLING,
    "term": IssueKind.TERMINOLOGY,
    "tone": IssueKind.GRAMMAR,
    "style": IssueKind.GRAMMAR,
    "punctuation": IssueKind.GRAMMAR,
}


class Position(BaseModel):
    """Half-open character span ``[start, end)`` in the checked text."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start: int = Field(ge=0)
    end: int

    @model_validator(mode="after")
    def _check_span(self) -> "Position":
        if self.end <= self.start:
            raise ValueError("position end must be greater than start")
        return self


class Issue(BaseModel):
    """A single flagged word.

    Fields:
    - word: surface form as it appears in the text (non-empty)
    - kind: spelling, terminology or grammar
    - suggestions: replacement candidates, most preferred first, no duplicates
    - reason: human-readable rationale; never empty
    - origin: which checker produced the record
    - confidence: model-reported tag; generative records default to medium
    - position: exact span when the producer knows it
    - issue_id: ``err-<n>`` identifier assigned per request
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    word: str
    kind: IssueKind = IssueKind.SPELLING
    suggestions: Tuple[str, ...] = ()
    reason: str = DEFAULT_REASON
    origin: Origin
    confidence: ConfidenceLevel | None = Field(default=None, validate_default=True)
    position: Position | None = None
    issue_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_derived_fields(cls, data: Any) -> Any:
        # confidence_score is derived; accept dumped records back unchanged.
        if isinstance(data, dict) and "confidence_score" in data:
            data = {k: v for k, v in data.items() if k != "confidence_score"}
        return data

    @field_validator("word", mode="before")
    def _strip_word(cls, value: object) -> str:
        result = str(value or "").strip()
        if not result:
            raise ValueError("word must not be empty")
        return result

    @field_validator("kind", mode="before")
    def _normalise_kind(cls, value: object) -> IssueKind:
        if isinstance(value, IssueKind):
            return value
        label = str(value or "").strip().lower()
        if label in IssueKind.all_values():
            return IssueKind(label)
        return _KIND_ALIASES.get(label, IssueKind.SPELLING)

    @field_validator("suggestions", mode="before")
    def _normalise_suggestions(cls, value: object) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            candidates = [str(x).strip() for x in value if x is not None]
        else:
            # allow a single suggestion as a bare string
            candidates = [str(value).strip()]
        deduped: list[str] = []
        for candidate in candidates:
            if candidate and candidate not in deduped:
                deduped.append(candidate)
        return tuple(deduped)

    @field_validator("reason", mode="before")
    def _default_reason(cls, value: object) -> str:
        return str(value or "").strip() or DEFAULT_REASON

    @field_validator("confidence", mode="before")
    def _normalise_confidence(
        cls, value: object, info: ValidationInfo
    ) -> ConfidenceLevel | None:
        level = _coerce_confidence(value)
        if level is None and info.data.get("origin") == Origin.GENERATIVE:
            return ConfidenceLevel.MEDIUM
        return level

    @computed_field  # type: ignore[prop-decorator]
    @property
    def confidence_score(self) -> float:
        if self.origin == Origin.DETERMINISTIC:
            return DETERMINISTIC_CONFIDENCE_SCORE
        return GENERATIVE_CONFIDENCE_SCORES[self.confidence or ConfidenceLevel.MEDIUM]

    @property
    def identity(self) -> str:
        """Case-insensitive key used for de-duplication and conflict resolution."""
        return self.word.lower()

    def with_id(self, issue_id: str) -> "Issue":
        return self.model_copy(update={"issue_id": issue_id})

    def to_event_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_llm_response(
        cls, data: object, issue_id: str | None = None
    ) -> "Issue":
        """Create an Issue from one object of the model's ``errors`` array.

        The model is asked for ``{word, suggestion, reason, type, confidence}``;
        a ``suggestions`` list is accepted as well. Objects without a word or
        without any suggestion are rejected with ``ValueError``.
        """
        if not isinstance(data, dict):
            raise ValueError("issue payload must be a JSON object")

        suggestions: list[Any] = []
        single = data.get("suggestion")
        if single is not None and not isinstance(single, (list, tuple)):
            suggestions.append(single)
        elif isinstance(single, (list, tuple)):
            suggestions.extend(single)
        many = data.get("suggestions")
        if isinstance(many, (list, tuple)):
            suggestions.extend(many)
        elif many is not None:
            suggestions.append(many)

        issue = cls(
            word=data.get("word"),
            kind=data.get("type") or data.get("kind"),
            suggestions=suggestions,
            reason=data.get("reason"),
            origin=Origin.GENERATIVE,
            confidence=data.get("confidence"),
            issue_id=issue_id,
        )
        if not issue.suggestions:
            raise ValueError("suggestion must not be empty")
        return issue

    @classmethod
    def from_dictionary_match(
        cls,
        word: str,
        start: int,
        end: int,
        suggestions: list[str],
        *,
        reason: str = "Not found in dictionary",
        issue_id: str | None = None,
    ) -> "Issue":
        return cls(
            word=word,
            kind=IssueKind.SPELLING,
            suggestions=suggestions,
            reason=reason,
            origin=Origin.DETERMINISTIC,
            position=Position(start=start, end=end),
            issue_id=issue_id,
        )


def _coerce_confidence(value: object) -> ConfidenceLevel | None:
    """Map a confidence tag or a numeric score onto a level."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, ConfidenceLevel):
        return value
    if isinstance(value, (int, float)):
        score = float(value)
        if score > 1:
            score = score / 100
        if score >= 0.9:
            return ConfidenceLevel.HIGH
        if score >= 0.7:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW
    label = str(value).strip().lower()
    if label in ConfidenceLevel.all_values():
        return ConfidenceLevel(label)
    return None
