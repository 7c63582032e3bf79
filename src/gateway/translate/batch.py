"""Concurrent fan-out/fan-in batch translation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

import httpx

from ..auth import mask_token
from ..config import Settings
from ..errors import InvalidRequest, Unauthorized, UpstreamError
from ..schemas import BatchTranslateRequest, BatchTranslateResponse
from ..tracing import format_json
from ..upstream.client import UpstreamClient
from .models import AggregateStatus, BatchOutcome, UnitResult, UpstreamCallSpec

logger = logging.getLogger("gateway.batch")


def validate_request(request: BatchTranslateRequest, credential: str) -> None:
    """Reject a batch before any upstream call is made."""

    if not request.text:
        raise InvalidRequest("text required")
    for idx, text in enumerate(request.text):
        if not text:
            raise InvalidRequest(f"text[{idx}] empty")
    if not request.target_lang:
        raise InvalidRequest("target_lang required")
    if not credential:
        raise Unauthorized()


def build_upstream_url(base_url: str, credential: str) -> str:
    return f"{base_url.rstrip('/')}/{credential}/translate"


class BatchTranslator:
    """Split a batch into single-text upstream calls and reassemble the replies."""

    def __init__(self, settings: Settings, *, upstream: Optional[UpstreamClient] = None) -> None:
        self.base_url = settings.target_base_url
        self.default_source_lang = settings.default_source_lang
        self.max_concurrent_requests = settings.max_concurrent_requests
        self.timeout = settings.request_timeout
        self.log_response_body = settings.log_response_body
        self.upstream = upstream or UpstreamClient(
            log_request_body=settings.log_request_body,
            log_response_body=settings.log_response_body,
        )

    def resolve_source_lang(self, explicit: Optional[str]) -> str:
        if explicit:
            return explicit
        return self.default_source_lang

    def build_call_spec(self, request: BatchTranslateRequest, credential: str) -> UpstreamCallSpec:
        return UpstreamCallSpec(
            url=build_upstream_url(self.base_url, credential),
            source_lang=self.resolve_source_lang(request.source_lang),
            target_lang=request.target_lang,
            timeout=self.timeout,
        )

    async def translate(
        self,
        request: BatchTranslateRequest,
        credential: str,
        *,
        request_id: Optional[str] = None,
    ) -> BatchOutcome:
        """Translate every text of the batch and report the aggregate status.

        Raises ``InvalidRequest`` or ``Unauthorized`` before any network call.
        Per-text upstream failures never raise; they are rendered inline.
        """

        request_id = request_id or str(time.time_ns())
        try:
            validate_request(request, credential)
        except (InvalidRequest, Unauthorized) as exc:
            logger.debug("[%s] request rejected: %s", request_id, exc.message)
            raise

        call_spec = self.build_call_spec(request, credential)
        logger.debug(
            "[%s] source language: %s (%s)",
            request_id,
            call_spec.source_lang,
            "explicit" if request.source_lang else "default",
        )
        logger.debug(
            "[%s] target URL: %s",
            request_id,
            call_spec.url.replace(credential, mask_token(credential)),
        )
        logger.info(
            "[%s] translating %d text(s) %s -> %s",
            request_id,
            len(request.text),
            call_spec.source_lang,
            call_spec.target_lang,
        )

        start = time.perf_counter()
        results = await self._fan_out(request.text, call_spec, request_id)
        elapsed = time.perf_counter() - start

        outcome = self._aggregate(results, call_spec)
        logger.info(
            "[%s] batch complete in %.3fs: %d succeeded, %d failed",
            request_id,
            elapsed,
            len(results) - len(outcome.failed),
            len(outcome.failed),
        )
        if self.log_response_body:
            logger.debug(
                "[%s] batch response body:\n%s",
                request_id,
                format_json(outcome.response.model_dump()),
            )
        return outcome

    async def _fan_out(
        self,
        texts: List[str],
        call_spec: UpstreamCallSpec,
        request_id: str,
    ) -> List[Optional[UnitResult]]:
        results: List[Optional[UnitResult]] = [None] * len(texts)
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)

        async with self.upstream.session(timeout=call_spec.timeout) as client:

            async def run_unit(index: int, text: str) -> None:
                async with semaphore:
                    results[index] = await self._translate_unit(client, index, text, call_spec, request_id)

            await asyncio.gather(*(run_unit(idx, text) for idx, text in enumerate(texts)))
        return results

    async def _translate_unit(
        self,
        client: httpx.AsyncClient,
        index: int,
        text: str,
        call_spec: UpstreamCallSpec,
        request_id: str,
    ) -> UnitResult:
        unit_id = f"{request_id}-{index}"
        logger.debug("[%s] translating text[%d]", unit_id, index)
        try:
            translation = await self.upstream.translate_one(
                text,
                call_spec.source_lang,
                call_spec.target_lang,
                call_spec.url,
                call_spec.timeout,
                client=client,
                request_id=unit_id,
            )
        except UpstreamError as exc:
            logger.debug("[%s] translation failed: %s", unit_id, exc.message)
            return UnitResult(index=index, error=exc.message)
        except Exception as exc:
            # No unit may abort the join; siblings still share the client.
            logger.error("[%s] unexpected translation failure: %s", unit_id, exc, exc_info=True)
            return UnitResult(index=index, error=f"{type(exc).__name__}: {exc}")
        logger.debug("[%s] translation succeeded", unit_id)
        return UnitResult(index=index, translation=translation)

    def _aggregate(self, results: List[Optional[UnitResult]], call_spec: UpstreamCallSpec) -> BatchOutcome:
        records = []
        failed: List[int] = []
        for idx, result in enumerate(results):
            if result is None:
                result = UnitResult(index=idx, error="no result recorded")
            if not result.ok:
                failed.append(idx)
            records.append(result.to_record(call_spec.source_lang))
        status = AggregateStatus.PARTIAL if failed else AggregateStatus.COMPLETE
        return BatchOutcome(
            response=BatchTranslateResponse(translations=records),
            status=status,
            failed=failed,
        )
