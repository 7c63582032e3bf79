"""Pydantic schema definitions."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class BatchTranslateRequest(BaseModel):
    """Inbound batch payload.

    Fields default to empty so that missing values reach the orchestrator's
    validation and produce its error messages instead of a schema error.
    """

    text: List[str] = []
    source_lang: Optional[str] = None
    target_lang: str = ""


class TranslationRecord(BaseModel):
    detected_source_language: str
    text: str


class BatchTranslateResponse(BaseModel):
    translations: List[TranslationRecord]


class UpstreamTranslateRequest(BaseModel):
    text: str
    source_lang: str
    target_lang: str


class UpstreamTranslateResponse(BaseModel):
    """Single-text upstream reply; only ``data`` and ``source_lang`` are used.

    Absent fields decode as empty strings, so a 200 reply missing them is
    still a success.
    """

    model_config = ConfigDict(extra="ignore")

    data: str = ""
    source_lang: str = ""
    target_lang: Optional[str] = None
    alternatives: Optional[List[Any]] = None
    code: Optional[int] = None
    id: Optional[int] = None
    method: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
