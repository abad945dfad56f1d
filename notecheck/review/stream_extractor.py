"""Recover issue records from a language model response while it streams.

The model is asked for ``{"errors": [{...}, {...}]}`` (a bare array is also
accepted). Each object in the array is emitted as an :class:`Issue` as soon
as its closing brace arrives, long before the response is complete.

The scanner keeps an explicit state (normal, inside a string, after a
backslash) plus the brace depth, so braces and quotes inside string values
never close an object early. Both survive between fragments, so every
character is examined once.

A bare array counts only when ``[`` is the first character after optional
whitespace and an optional code-fence line; otherwise the scanner waits for
``"errors": [``, so commentary before the payload is skipped.

Consumed text is moved out of the live buffer. What remains of it is a
skeleton: the opening bracket, the separators, a ``{}`` placeholder for each
object that parsed, and the raw text of any balanced object that did not.
When the stream ends the skeleton up to the closing ``]`` is parsed as the
authoritative array (with json-repair as a fallback for the kept objects)
and any record not emitted yet is emitted then. Placeholders never
normalise, so nothing is emitted twice. A response whose array never closed
was cut off, and ``finish`` raises rather than report it as complete.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator

from notecheck.llm.json_utils import load_json_document
from notecheck.llm.provider import LLMParseError
from notecheck.models import Issue

LOGGER = logging.getLogger(__name__)

_ERRORS_ARRAY = re.compile(r'"errors"\s*:\s*\[')
_LEADING = re.compile(r"\s*(?:```[\w-]*[ \t]*\r?\n)?\s*")
_PLACEHOLDER = "{}"


class ScanState(Enum):
    NORMAL = "normal"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


class IncrementalIssueExtractor:
    """Single-use parser fed with response fragments in arrival order."""

    def __init__(self) -> None:
        self._tail = ""
        self._skeleton: list[str] = []
        self._scan_pos = 0
        self._array_open = False
        self._array_closed = False
        self._array_end = 0
        self._state = ScanState.NORMAL
        self._depth = 0
        self._bracket_depth = 0
        self._object_start = 0
        self._emitted = 0
        self._finished = False

    @property
    def emitted_count(self) -> int:
        return self._emitted

    @property
    def buffered_chars(self) -> int:
        """Characters held in the live buffer (the unconsumed tail)."""
        return len(self._tail)

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, fragment: str) -> list[Issue]:
        """Append ``fragment`` and return the records it completed."""
        if self._finished:
            raise RuntimeError("extractor has already finished")
        if not fragment:
            return []
        self._tail += fragment
        if self._array_closed:
            return []
        if not self._array_open and not self._open_array():
            return []
        return self._scan()

    def finish(self) -> list[Issue]:
        """Parse everything received and return records not yet emitted.

        Raises:
            LLMParseError: If no ``errors`` array (or bare array) was found,
                if the array was never closed, or if it does not parse.
        """
        if self._finished:
            raise RuntimeError("extractor has already finished")
        self._finished = True

        if not self._array_open:
            raise LLMParseError(
                "Streamed response does not contain an errors array",
                response_text=self._tail,
            )
        if not self._array_closed:
            raise LLMParseError(
                "Streamed response ended before the errors array was closed",
                response_text="".join(self._skeleton) + self._tail,
            )

        document = "".join(self._skeleton) + self._tail[: self._array_end]
        try:
            items = load_json_document(document)
        except ValueError as exc:
            raise LLMParseError(
                f"Streamed errors array is not valid JSON: {exc}",
                response_text=document,
            ) from exc
        if not isinstance(items, list):
            raise LLMParseError(
                "Streamed errors array did not parse as a list",
                response_text=document,
            )

        flushed: list[Issue] = []
        for item in items:
            issue = self._normalise(item)
            if issue is not None:
                flushed.append(issue)
        if flushed:
            LOGGER.debug("Final parse recovered %d record(s)", len(flushed))
        return flushed

    def _open_array(self) -> bool:
        """Locate the start of the errors array in the live buffer."""
        start = _LEADING.match(self._tail).end()
        if self._tail[start : start + 1] != "[":
            match = _ERRORS_ARRAY.search(self._tail)
            if match is None:
                return False
            start = match.end() - 1

        # Only the array itself is kept; the header is not parsed again
        self._skeleton.append("[")
        self._tail = self._tail[start + 1 :]
        self._scan_pos = 0
        self._array_open = True
        return True

    def _scan(self) -> list[Issue]:
        emitted: list[Issue] = []
        i = self._scan_pos
        while i < len(self._tail):
            ch = self._tail[i]
            state = self._state

            if state is ScanState.ESCAPED:
                self._state = ScanState.IN_STRING
            elif state is ScanState.IN_STRING:
                if ch == "\\":
                    self._state = ScanState.ESCAPED
                elif ch == '"':
                    self._state = ScanState.NORMAL
            elif ch == '"':
                self._state = ScanState.IN_STRING
            elif ch == "{":
                if self._depth == 0:
                    self._object_start = i
                self._depth += 1
            elif ch == "}" and self._depth > 0:
                self._depth -= 1
                if self._depth == 0:
                    issue = self._consume(i + 1)
                    if issue is not None:
                        emitted.append(issue)
                    i = 0
                    continue
            elif self._depth == 0 and ch == "[":
                self._bracket_depth += 1
            elif self._depth == 0 and ch == "]":
                if self._bracket_depth == 0:
                    self._array_closed = True
                    i += 1
                    self._array_end = i
                    break
                self._bracket_depth -= 1
            i += 1

        self._scan_pos = i
        return emitted

    def _consume(self, end: int) -> Issue | None:
        """Move the object ending at ``end`` out of the live buffer."""
        span = self._tail[self._object_start : end]
        self._skeleton.append(self._tail[: self._object_start])
        self._tail = self._tail[end:]
        self._object_start = 0

        try:
            data = json.loads(span)
        except json.JSONDecodeError:
            # Kept verbatim so the repairing final parse can try again
            LOGGER.debug("Deferring unparsable object: %.80s", span)
            self._skeleton.append(span)
            return None

        self._skeleton.append(_PLACEHOLDER)
        return self._normalise(data)

    def _normalise(self, data: Any) -> Issue | None:
        try:
            issue = Issue.from_llm_response(data, issue_id=f"err-{self._emitted}")
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError as well
            if data != {}:
                LOGGER.debug("Skipping invalid issue object: %s", exc)
            return None
        self._emitted += 1
        return issue


async def extract_issues(fragments: AsyncIterable[str]) -> AsyncIterator[Issue]:
    """Yield records from an asynchronous fragment stream.

    If the upstream iterator raises or is cancelled the exception propagates
    and the final parse never runs, so no completeness is claimed.
    """
    extractor = IncrementalIssueExtractor()
    async for fragment in fragments:
        for issue in extractor.feed(fragment):
            yield issue
    for issue in extractor.finish():
        yield issue


def iter_issues(fragments: Iterable[str]) -> Iterator[Issue]:
    """Synchronous counterpart of :func:`extract_issues`."""
    extractor = IncrementalIssueExtractor()
    for fragment in fragments:
        yield from extractor.feed(fragment)
    yield from extractor.finish()
