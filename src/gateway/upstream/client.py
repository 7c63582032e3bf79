"""Single-text upstream translation client."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from ..errors import UpstreamError
from ..schemas import UpstreamTranslateRequest, UpstreamTranslateResponse
from ..tracing import format_json
from ..translate.models import Translation

logger = logging.getLogger("gateway.upstream")


class UpstreamClient:
    """Issue one-text-per-call requests against the upstream translate endpoint."""

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        log_request_body: bool = False,
        log_response_body: bool = False,
    ) -> None:
        self._client = client
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body

    @contextlib.asynccontextmanager
    async def session(self, *, timeout: float) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a temporary one closed on exit."""

        if self._client is not None:
            yield self._client
            return
        client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        try:
            yield client
        finally:
            await client.aclose()

    async def translate_one(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        url: str,
        timeout: float,
        *,
        client: Optional[httpx.AsyncClient] = None,
        request_id: str = "-",
    ) -> Translation:
        """Translate a single text.

        Every failure, including a timeout, is raised as ``UpstreamError`` so
        the caller can confine it to this text.
        """

        payload = UpstreamTranslateRequest(
            text=text,
            source_lang=source_lang,
            target_lang=target_lang,
        ).model_dump()
        if self.log_request_body:
            logger.debug("[%s] upstream request body:\n%s", request_id, format_json(payload))

        async with contextlib.AsyncExitStack() as stack:
            if client is None:
                client = await stack.enter_async_context(self.session(timeout=timeout))
            start = time.perf_counter()
            try:
                return await asyncio.wait_for(
                    self._post(client, url, payload, timeout, request_id),
                    timeout=timeout,
                )
            except asyncio.TimeoutError as exc:
                elapsed = time.perf_counter() - start
                raise UpstreamError(
                    f"request timed out after {timeout:g}s (elapsed: {elapsed:.3f}s)"
                ) from exc

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict,
        timeout: float,
        request_id: str,
    ) -> Translation:
        start = time.perf_counter()
        try:
            response = await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            elapsed = time.perf_counter() - start
            raise UpstreamError(
                f"request failed (elapsed: {elapsed:.3f}s): {type(exc).__name__}: {exc}"
            ) from exc
        elapsed = time.perf_counter() - start

        logger.debug("[%s] upstream status: %d (elapsed: %.3fs)", request_id, response.status_code, elapsed)
        if self.log_response_body:
            logger.debug("[%s] upstream response body:\n%s", request_id, format_json(response.text))

        if response.status_code != httpx.codes.OK:
            raise UpstreamError(
                f"upstream returned {response.status_code} - {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            parsed = UpstreamTranslateResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise UpstreamError(
                f"failed to parse upstream response: {exc.error_count()} validation error(s)",
                status=response.status_code,
                body=response.text,
            ) from exc

        return Translation(detected_source_language=parsed.source_lang, text=parsed.data)
