import functools

from fastapi import APIRouter, Depends, HTTPException, Request

from smartskip.api.deps import get_session_store
from smartskip.core.errors import SessionLimitReached, SessionNotFound
from smartskip.i18n import i18n
from smartskip.models.request import AdvanceRequest, RateRequest, SessionRequest
from smartskip.models.response import AdvanceResponse, SessionResponse
from smartskip.services.sessions import PlaybackSessionStore
from smartskip.services.skip_engine import SkipEngine
from smartskip.utils.locale import get_locale

router = APIRouter()


def lookup(request: Request, store: PlaybackSessionStore, session_id: str) -> SkipEngine:
    try:
        return store.get(session_id)
    except SessionNotFound:
        _ = functools.partial(i18n.get, locale=get_locale(request.headers.get("accept-language")))
        raise HTTPException(status_code=404, detail=_("error.session_not_found"))


def snapshot(session_id: str, engine: SkipEngine) -> SessionResponse:
    return SessionResponse(session_id=session_id, state=engine.state, segments=engine.segments)


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    request: Request,
    session_request: SessionRequest,
    store: PlaybackSessionStore = Depends(get_session_store),
):
    """Start a playback session over an analysis result's segments"""
    try:
        session_id, engine = store.create(session_request.segments)
    except SessionLimitReached:
        _ = functools.partial(i18n.get, locale=get_locale(request.headers.get("accept-language")))
        raise HTTPException(status_code=503, detail=_("error.too_many_sessions"))
    return snapshot(session_id, engine)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(request: Request, session_id: str, store: PlaybackSessionStore = Depends(get_session_store)):
    return snapshot(session_id, lookup(request, store, session_id))


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(request: Request, session_id: str, store: PlaybackSessionStore = Depends(get_session_store)):
    lookup(request, store, session_id)
    store.delete(session_id)


@router.put("/sessions/{session_id}/source", response_model=SessionResponse)
async def change_source(
    request: Request,
    session_id: str,
    session_request: SessionRequest,
    store: PlaybackSessionStore = Depends(get_session_store),
):
    """Media source changed: new segments, fresh state"""
    engine = lookup(request, store, session_id)
    engine.load(session_request.segments)
    return snapshot(session_id, engine)


@router.post("/sessions/{session_id}/advance", response_model=AdvanceResponse)
async def advance(
    request: Request,
    session_id: str,
    advance_request: AdvanceRequest,
    store: PlaybackSessionStore = Depends(get_session_store),
):
    """Playback clock tick; answers whether to jump the play head"""
    engine = lookup(request, store, session_id)
    decision = engine.advance(advance_request.position)
    return AdvanceResponse(session_id=session_id, decision=decision, state=engine.state)


@router.post("/sessions/{session_id}/skip", response_model=SessionResponse)
async def toggle_skip(request: Request, session_id: str, store: PlaybackSessionStore = Depends(get_session_store)):
    engine = lookup(request, store, session_id)
    engine.toggle_skip()
    return snapshot(session_id, engine)


@router.post("/sessions/{session_id}/turbo", response_model=SessionResponse)
async def toggle_turbo(request: Request, session_id: str, store: PlaybackSessionStore = Depends(get_session_store)):
    engine = lookup(request, store, session_id)
    engine.toggle_turbo()
    return snapshot(session_id, engine)


@router.post("/sessions/{session_id}/rate", response_model=SessionResponse)
async def set_rate(
    request: Request,
    session_id: str,
    rate_request: RateRequest,
    store: PlaybackSessionStore = Depends(get_session_store),
):
    engine = lookup(request, store, session_id)
    engine.set_rate(rate_request.rate)
    return snapshot(session_id, engine)
