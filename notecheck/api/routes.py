"""HTTP routes: health, quick/full/streamed checks and terminology extraction."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from notecheck.review.hybrid import HybridChecker

from .schemas import FullCheckRequest, QuickCheckRequest, TerminologyRequest

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["check"])


def get_checker(request: Request) -> HybridChecker:
    return request.app.state.checker


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/health")
def health(checker: HybridChecker = Depends(get_checker)) -> dict[str, Any]:
    return {
        "status": "ok",
        "aiConfigured": checker.ai_configured,
        "dictionaryLoaded": checker.dictionary_loaded,
    }


@router.post("/check/quick")
def check_quick(
    body: QuickCheckRequest, checker: HybridChecker = Depends(get_checker)
) -> Any:
    if not (body.text or "").strip():
        return _error(400, "Text is required")
    try:
        report = checker.quick_check(body.text, body.terminology)
    except Exception:
        LOGGER.exception("Quick check failed")
        return _error(500, "Spell check failed")
    return report.to_dict()


@router.post("/check/full")
def check_full(
    body: FullCheckRequest, checker: HybridChecker = Depends(get_checker)
) -> Any:
    if not (body.speaker_notes or "").strip():
        return _error(400, "Speaker notes are required")
    try:
        result = checker.full_check(
            body.speaker_notes, body.slide_content or "", body.terminology
        )
    except Exception:
        LOGGER.exception("Full check failed")
        return _error(500, "Spell check failed")
    return result.to_dict()


@router.post("/check/stream")
async def check_stream(
    body: FullCheckRequest, checker: HybridChecker = Depends(get_checker)
) -> Any:
    if not (body.speaker_notes or "").strip():
        return _error(400, "Speaker notes are required")

    async def events() -> AsyncIterator[dict[str, str]]:
        try:
            async for message in checker.stream_check(
                body.speaker_notes, body.slide_content or "", body.terminology
            ):
                yield {"data": json.dumps(message)}
        except Exception:
            LOGGER.exception("Streamed check failed")
            yield {"data": json.dumps({"type": "error", "message": "Spell check failed"})}

    return EventSourceResponse(events())


@router.post("/terminology/extract")
def extract_terminology(
    body: TerminologyRequest, checker: HybridChecker = Depends(get_checker)
) -> Any:
    if not (body.slide_content or "").strip():
        return _error(400, "Slide content is required")
    if not checker.ai_configured:
        return _error(503, "No language model configured")
    try:
        terms = checker.extract_terminology(body.slide_content)
    except Exception:
        LOGGER.exception("Terminology extraction failed")
        return _error(500, "Terminology extraction failed")
    return {"terminology": terms}
