import logging

from fastapi import APIRouter

from ..core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/healthz")
async def health():
    """Health check; the OpenRouter check is skipped in dev/test to keep it fast."""
    if settings.service_env in {"dev", "test"}:
        openrouter_healthy = bool(settings.openrouter_api_key)
    else:
        from ..services.openrouter import health_check as openrouter_health
        openrouter_healthy = await openrouter_health()

    if not openrouter_healthy:
        logger.warning("OpenRouter unavailable, checks will return degraded results")
        return {
            "ok": False,
            "status": "degraded",
            "services": {"openrouter": openrouter_healthy}
        }

    return {"ok": True, "status": "healthy", "services": {"openrouter": True}}
