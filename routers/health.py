from fastapi import APIRouter
from backend import memory_backend
from schemas.rooms import HealthResponse, utcnow

health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
async def health():
    stats = memory_backend.stats()
    return HealthResponse(
        status="healthy",
        timestamp=utcnow(),
        rooms=stats["rooms"],
        participants=stats["participants"],
    )
