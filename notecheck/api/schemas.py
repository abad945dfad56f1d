"""Request bodies for the HTTP API.

Field names follow the browser client (camelCase); Python code uses the
snake_case attributes.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_terms(value: object) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError("terminology must be a list of strings")
    return [str(term).strip() for term in value if str(term).strip()]


class QuickCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    terminology: List[str] = Field(default_factory=list)

    @field_validator("terminology", mode="before")
    def _normalise_terminology(cls, value: object) -> List[str]:
        return _clean_terms(value)


class FullCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    speaker_notes: Optional[str] = Field(default=None, alias="speakerNotes")
    slide_content: Optional[str] = Field(default=None, alias="slideContent")
    terminology: List[str] = Field(default_factory=list)

    @field_validator("terminology", mode="before")
    def _normalise_terminology(cls, value: object) -> List[str]:
        return _clean_terms(value)


class TerminologyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slide_content: Optional[str] = Field(default=None, alias="slideContent")
