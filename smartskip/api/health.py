from fastapi import APIRouter

from smartskip.config.settings import config
from smartskip.core.state import state
from smartskip.i18n import i18n
from smartskip.services.sessions import sessions

router = APIRouter()


async def redis_status() -> str:
    if not state.redis:
        return i18n.get("response.redis_disabled")
    try:
        await state.redis.ping()
        return i18n.get("response.redis_connected")
    except Exception:
        return i18n.get("response.redis_disconnected")


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": i18n.get("response.status_running"),
        "service": config.api.title,
        "version": config.api.version,
        "redis_enabled": state.redis is not None
    }


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    return {
        "status": i18n.get("health.status"),
        "redis": await redis_status()
    }


@router.get("/health/full")
async def health_check_full():
    """Detailed health check"""
    return {
        "status": i18n.get("health.status"),
        "redis_status": await redis_status(),
        "resolver_backends": len(config.resolver.endpoints),
        "relay_backends": len(config.relay.templates),
        "analysis_configured": bool(config.analysis.api_key),
        "playback_sessions": len(sessions)
    }
