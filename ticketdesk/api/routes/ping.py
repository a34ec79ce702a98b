from fastapi import APIRouter, Request

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping(request: Request) -> dict[str, str]:
    storage = getattr(request.app.state, "storage", None)
    return {"status": "ok" if storage is not None else "degraded"}
