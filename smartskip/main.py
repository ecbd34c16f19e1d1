import os
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from smartskip.api import admin, health, media, playback
from smartskip.config.settings import CONFIG_PATH, config
from smartskip.core.logging import setup_logging
from smartskip.infra.http import close_http_client, init_http_client
from smartskip.infra.redis import close_redis, init_redis

setup_logging(config.logging)

app = FastAPI(
    title=config.api.title,
    description=config.api.description,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Progress", "X-Request-ID"],
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(media.router, tags=["Media"])
app.include_router(playback.router, prefix="/playback", tags=["Playback"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


@app.on_event("startup")
async def startup_event():
    # Write out the effective configuration the first time the service runs
    config_dir = os.path.dirname(CONFIG_PATH)
    if config_dir and not os.path.exists(config_dir):
        os.makedirs(config_dir, exist_ok=True)
    if not os.path.exists(CONFIG_PATH):
        config.save_to_file(CONFIG_PATH)

    await init_http_client()
    await init_redis()


@app.on_event("shutdown")
async def shutdown_event():
    await close_http_client()
    await close_redis()
