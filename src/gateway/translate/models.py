"""Internal data model for batch fan-out."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional

from ..schemas import BatchTranslateResponse, TranslationRecord


ERROR_MARKER = "[TRANSLATION ERROR: {error}]"


class AggregateStatus(enum.IntEnum):
    """Batch-level outcome, valued as the HTTP status it maps to."""

    COMPLETE = 200
    PARTIAL = 206


@dataclass(slots=True, frozen=True)
class UpstreamCallSpec:
    """Per-batch upstream context shared read-only by every unit of work."""

    url: str
    source_lang: str
    target_lang: str
    timeout: float


@dataclass(slots=True)
class Translation:
    detected_source_language: str
    text: str


@dataclass(slots=True)
class UnitResult:
    """Outcome for one input position; exactly one of the fields is set."""

    index: int
    translation: Optional[Translation] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_record(self, source_lang: str) -> TranslationRecord:
        if self.translation is not None and self.error is None:
            return TranslationRecord(
                detected_source_language=self.translation.detected_source_language,
                text=self.translation.text,
            )
        return TranslationRecord(
            detected_source_language=source_lang,
            text=ERROR_MARKER.format(error=self.error),
        )


@dataclass(slots=True)
class BatchOutcome:
    response: BatchTranslateResponse
    status: AggregateStatus
    failed: List[int]

    @property
    def status_code(self) -> int:
        return int(self.status)
