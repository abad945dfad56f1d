from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import AsyncIterator

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notecheck.llm.provider import LLMParseError
from notecheck.models import IssueKind, Origin
from notecheck.review.stream_extractor import (
    IncrementalIssueExtractor,
    extract_issues,
    iter_issues,
)

ERRORS = [
    {
        "word": "teh",
        "suggestion": "the",
        "reason": "Transposed letters",
        "type": "spelling",
        "confidence": "high",
    },
    {
        "word": "gtm",
        "suggestion": "go-to-market",
        "reason": 'Your slide uses {go-to-market}; the "formal" term',
        "type": "terminology",
    },
    {
        "word": "doesnt",
        "suggestion": "doesn't",
        "reason": "Missing apostrophe } [in] a contraction \\",
        "type": "grammar",
        "confidence": "low",
    },
]
PAYLOAD = json.dumps({"errors": ERRORS})


def _run_all(fragments: list[str]) -> list:
    extractor = IncrementalIssueExtractor()
    issues = []
    for fragment in fragments:
        issues.extend(extractor.feed(fragment))
    issues.extend(extractor.finish())
    return issues


def test_single_fragment_and_char_by_char_agree() -> None:
    whole = _run_all([PAYLOAD])
    by_char = _run_all(list(PAYLOAD))

    assert [issue.word for issue in whole] == ["teh", "gtm", "doesnt"]
    assert whole == by_char
    assert [issue.issue_id for issue in by_char] == ["err-0", "err-1", "err-2"]


def test_records_are_emitted_before_the_response_completes() -> None:
    first_object_end = PAYLOAD.index("}") + 1
    extractor = IncrementalIssueExtractor()

    emitted = extractor.feed(PAYLOAD[:first_object_end])

    assert [issue.word for issue in emitted] == ["teh"]
    assert emitted[0].origin == Origin.GENERATIVE
    assert emitted[0].kind == IssueKind.SPELLING
    assert extractor.emitted_count == 1


def test_braces_and_escaped_quotes_inside_strings() -> None:
    issues = _run_all(list(PAYLOAD))

    assert [issue.reason for issue in issues] == [item["reason"] for item in ERRORS]
    assert issues[1].kind == IssueKind.TERMINOLOGY
    assert issues[2].kind == IssueKind.GRAMMAR


def test_final_parse_emits_nothing_already_emitted() -> None:
    extractor = IncrementalIssueExtractor()

    emitted = extractor.feed(PAYLOAD)

    assert len(emitted) == 3
    assert extractor.finish() == []


def test_invalid_objects_are_skipped() -> None:
    payload = json.dumps(
        {
            "errors": [
                {"word": "teh", "suggestion": "the"},
                {"word": "", "suggestion": "x"},
                {"suggestion": "orphan"},
                {
                    "word": "gtm",
                    "suggestions": ["go-to-market", "GTM"],
                    "meta": {"source": {"slide": 2}},
                },
                "not an object",
                {"word": "nosuggestion"},
            ]
        }
    )

    for fragments in ([payload], list(payload)):
        issues = _run_all(fragments)
        assert [issue.word for issue in issues] == ["teh", "gtm"]
        assert issues[1].suggestions == ("go-to-market", "GTM")
        assert [issue.issue_id for issue in issues] == ["err-0", "err-1"]


def test_unparsable_object_is_recovered_by_final_parse() -> None:
    extractor = IncrementalIssueExtractor()

    first = extractor.feed('{"errors": [{"word": "teh", "suggestion": "the"}, ')
    second = extractor.feed('{"word": "recieve", "suggestion": "receive",}')
    third = extractor.feed("]}")
    flushed = extractor.finish()

    assert [issue.word for issue in first] == ["teh"]
    assert second == [] and third == []
    assert [issue.word for issue in flushed] == ["recieve"]
    assert flushed[0].issue_id == "err-1"


def test_bare_array_payload() -> None:
    payload = json.dumps([{"word": "teh", "suggestion": "the"}])
    issues = _run_all(list(payload))
    assert [issue.word for issue in issues] == ["teh"]


def test_code_fenced_payload() -> None:
    issues = _run_all(["```json\n", PAYLOAD, "\n```"])
    assert [issue.word for issue in issues] == ["teh", "gtm", "doesnt"]


def test_empty_errors_array() -> None:
    assert _run_all(['{"errors": ', "[]}"]) == []


def test_live_buffer_shrinks_after_each_object() -> None:
    extractor = IncrementalIssueExtractor()

    extractor.feed('{"errors": [')
    assert extractor.buffered_chars == 0

    extractor.feed('{"word": "teh", "suggestion": "the"}, ')
    assert extractor.buffered_chars == 2

    partial = '{"word": "systme", "sugg'
    assert extractor.feed(partial) == []
    assert extractor.buffered_chars == 2 + len(partial)

    completed = extractor.feed('estion": "system"}')
    assert [issue.word for issue in completed] == ["systme"]
    assert extractor.buffered_chars == 0


@pytest.mark.parametrize(
    "response",
    ["I could not find any problems.", '{"result": "no issues"}'],
)
def test_unusable_response_raises_parse_error(response: str) -> None:
    extractor = IncrementalIssueExtractor()
    extractor.feed(response)

    with pytest.raises(LLMParseError):
        extractor.finish()


@pytest.mark.parametrize(
    "response",
    [
        '{"errors": [{"word": "teh", "suggestion": "the"}, {"word": "systme", "suggestion": "sys',
        '{"errors": [{"word": "teh", "suggestion": "the"}, {"word": "systme", "reason": "Missing',
        '{"errors": [{"word": "teh", "suggestion": "the"}, {"word": "systme", "suggestion": "system"}',
        '{"errors": [{"word": "teh", "suggestion": "the"},',
    ],
)
def test_truncated_response_raises_after_emitting_complete_records(response: str) -> None:
    for fragments in ([response], list(response)):
        extractor = IncrementalIssueExtractor()
        emitted = []
        for fragment in fragments:
            emitted.extend(extractor.feed(fragment))

        with pytest.raises(LLMParseError, match="ended before the errors array was closed"):
            extractor.finish()
        assert emitted[0].word == "teh"


def test_commentary_before_payload_is_skipped() -> None:
    response = 'Results [json]:\n{"errors": [{"word": "teh", "suggestion": "the"}]}'

    for fragments in ([response], list(response)):
        extractor = IncrementalIssueExtractor()
        emitted = []
        for fragment in fragments:
            emitted.extend(extractor.feed(fragment))

        assert [issue.word for issue in emitted] == ["teh"]
        assert extractor.finish() == []


def test_bracket_in_prose_is_not_a_bare_array() -> None:
    extractor = IncrementalIssueExtractor()

    assert extractor.feed('See [notes]: [{"word": "teh", "suggestion": "the"}]') == []
    with pytest.raises(LLMParseError, match="does not contain an errors array"):
        extractor.finish()


def test_missing_outer_brace_after_closed_array_is_complete() -> None:
    response = '{"errors": [{"word": "teh", "suggestion": "the"}, {"word": "recieve", "suggestion": "receive",}]'

    issues = _run_all(list(response))

    assert [issue.word for issue in issues] == ["teh", "recieve"]


def test_extractor_is_single_use() -> None:
    extractor = IncrementalIssueExtractor()
    extractor.feed(PAYLOAD)
    extractor.finish()

    with pytest.raises(RuntimeError):
        extractor.feed("{}")
    with pytest.raises(RuntimeError):
        extractor.finish()


def test_iter_issues_drives_the_extractor() -> None:
    chunks = [PAYLOAD[i : i + 7] for i in range(0, len(PAYLOAD), 7)]
    assert [issue.word for issue in iter_issues(chunks)] == ["teh", "gtm", "doesnt"]


def test_extract_issues_from_async_stream() -> None:
    async def fragments() -> AsyncIterator[str]:
        for i in range(0, len(PAYLOAD), 5):
            await asyncio.sleep(0)
            yield PAYLOAD[i : i + 5]

    async def collect() -> list:
        return [issue async for issue in extract_issues(fragments())]

    issues = asyncio.run(collect())
    assert [issue.word for issue in issues] == ["teh", "gtm", "doesnt"]


def test_aborted_stream_keeps_emitted_records_and_raises() -> None:
    first_object_end = PAYLOAD.index("}") + 1

    async def fragments() -> AsyncIterator[str]:
        yield PAYLOAD[:first_object_end]
        yield PAYLOAD[first_object_end : first_object_end + 10]
        raise ConnectionError("stream dropped")

    async def collect() -> list:
        seen = []
        with pytest.raises(ConnectionError):
            async for issue in extract_issues(fragments()):
                seen.append(issue)
        return seen

    seen = asyncio.run(collect())
    assert [issue.word for issue in seen] == ["teh"]
