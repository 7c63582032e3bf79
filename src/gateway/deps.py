"""FastAPI dependencies."""

from typing import Optional

from fastapi import Header, Request

from .auth import extract_token
from .config import Settings
from .translate.batch import BatchTranslator


def get_settings_state(request: Request) -> Settings:
    """Return the settings the application was built with."""

    return request.app.state.settings


def get_batch_translator(request: Request) -> BatchTranslator:
    """Return the orchestrator owned by the application."""

    return request.app.state.batch_translator


def get_credential(authorization: Optional[str] = Header(default=None)) -> str:
    """Extract the opaque upstream credential from the Authorization header."""

    return extract_token(authorization)
