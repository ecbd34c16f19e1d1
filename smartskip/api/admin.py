import os

from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from smartskip.config.settings import config

router = APIRouter()

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for admin endpoints"""
    expected_key = os.getenv("ADMIN_API_KEY")
    if not expected_key:
        return None

    if api_key != expected_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return api_key


@router.get("/config", dependencies=[Depends(verify_api_key)])
async def get_config():
    """Get current configuration (admin only); credentials are never echoed"""
    return {
        "rate_limit": config.rate_limit.model_dump(),
        "resolver": config.resolver.model_dump(),
        "relay": config.relay.model_dump(),
        "acquisition": config.acquisition.model_dump(),
        "analysis": config.analysis.model_dump(exclude={"api_key"}),
        "playback": config.playback.model_dump(),
        "security": config.security.model_dump(),
        "i18n": config.i18n.model_dump()
    }
