"""FastAPI application entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import mask_token
from .config import CONFIG_FILE_ENV, Settings, get_settings, summarize
from .deps import get_batch_translator, get_credential, get_settings_state
from .errors import GatewayError
from .schemas import BatchTranslateRequest, BatchTranslateResponse, ErrorResponse, HealthResponse
from .tracing import format_json, log_headers
from .translate.batch import BatchTranslator
from .upstream.client import UpstreamClient

SERVICE_NAME = "v2-to-v1-translator"

logger = logging.getLogger("gateway")


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.effective_log_level, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    root_logger.setLevel(level)


def create_app(
    settings: Optional[Settings] = None,
    *,
    upstream: Optional[UpstreamClient] = None,
) -> FastAPI:
    """Build the gateway application around an explicit settings value."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="Batch Translation Gateway", version="0.1.0")
    app.state.settings = settings
    app.state.batch_translator = BatchTranslator(settings, upstream=upstream)

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Gateway configuration:")
        for line in summarize(settings):
            logger.info("  %s", line)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in exc.errors()
        )
        logger.debug("Rejected malformed request body: %s", details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid request format", "details": details},
        )

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        """Liveness probe."""

        return HealthResponse(status="healthy", service=SERVICE_NAME)

    @app.post(
        "/v2/translate",
        response_model=BatchTranslateResponse,
        tags=["translation"],
        responses={
            206: {"model": BatchTranslateResponse, "description": "One or more texts failed"},
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
        },
    )
    @app.post("/translate-batch", response_model=BatchTranslateResponse, tags=["translation"], include_in_schema=False)
    async def translate_batch(
        payload: BatchTranslateRequest,
        request: Request,
        credential: str = Depends(get_credential),
        translator: BatchTranslator = Depends(get_batch_translator),
        app_settings: Settings = Depends(get_settings_state),
    ) -> JSONResponse:
        """Translate a batch of texts through the single-text upstream."""

        request_id = str(time.time_ns())
        logger.debug("[%s] POST %s", request_id, request.url.path)
        if app_settings.log_headers:
            log_headers(logger, request_id, request.headers.items())
        if app_settings.log_request_body:
            logger.debug("[%s] batch request body:\n%s", request_id, format_json(payload.model_dump()))
        logger.debug("[%s] extracted credential: %s", request_id, mask_token(credential) or "<empty>")

        outcome = await translator.translate(payload, credential, request_id=request_id)
        if outcome.failed:
            logger.warning(
                "[%s] partial result: text index(es) %s failed",
                request_id,
                ", ".join(str(idx) for idx in outcome.failed),
            )
        return JSONResponse(status_code=outcome.status_code, content=outcome.response.model_dump())

    return app


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch translation gateway")
    parser.add_argument("--host", default=None, help="Address to bind (overrides configuration)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides configuration)")
    parser.add_argument("--config", default=None, help="Path to the YAML configuration file")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.config:
        os.environ[CONFIG_FILE_ENV] = args.config
    overrides = {key: value for key, value in (("host", args.host), ("port", args.port)) if value is not None}
    settings = Settings(**overrides)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    main()
