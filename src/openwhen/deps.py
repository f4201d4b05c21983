"""FastAPI dependencies for Open When routes."""

from __future__ import annotations

from fastapi import Request

from openwhen.config import OpenWhenConfig
from openwhen.decoder import DecodeCascade
from openwhen.opened import OpenedLetterStore


def get_config(request: Request) -> OpenWhenConfig:
    return request.app.state.config


def get_decoder(request: Request) -> DecodeCascade:
    """Get the decode cascade from app state."""
    return request.app.state.decoder


def get_opened_store(request: Request) -> OpenedLetterStore:
    """Get the opened-letter store from app state."""
    return request.app.state.opened
