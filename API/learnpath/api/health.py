from fastapi import APIRouter

from learnpath.core.settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "learnpath-api",
        "llm_model": settings.llm_model,
        "llm_configured": bool(settings.gemini_api_key),
    }
