from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from chatrooms.adapters.store import AbstractStore
from chatrooms.core.dependencies import get_store

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(store: Annotated[AbstractStore, Depends(get_store)]) -> JSONResponse:
    """Report liveness and whether the store answers a ping.

    Answers 503 with ``status: degraded`` when the store is unreachable, so
    load balancers can take the instance out of rotation.
    """
    store_ok = store.ping()
    return JSONResponse(
        status_code=200 if store_ok else 503,
        content={"status": "ok" if store_ok else "degraded", "store": "ok" if store_ok else "unavailable"},
    )
