"""Meta endpoints — health, version, opened-letter counts."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from openwhen.deps import get_opened_store
from openwhen.opened import OpenedLetterStore

GATEWAY_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1", tags=["meta"])


@router.get("/health")
def health():
    return {"status": "ok", "service": "openwhen"}


@router.get("/version")
def version():
    return {"gateway": GATEWAY_VERSION}


@router.get("/counts")
def counts(store: OpenedLetterStore = Depends(get_opened_store)):
    return {"opened": store.count()}
