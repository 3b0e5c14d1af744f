from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from estate_iam.app.services.ephemeral_store import IEphemeralStore
from estate_iam.app.services.errors import StoreUnavailableError
from estate_iam.depends import get_ephemeral_store

router = APIRouter()


@router.get("/health")
async def health_check(store: IEphemeralStore = Depends(get_ephemeral_store)):
    """Liveness plus a Redis round trip"""
    try:
        await store.ping()
    except StoreUnavailableError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "redis": "unavailable"},
        )
    return {"status": "ok", "redis": "ok"}
