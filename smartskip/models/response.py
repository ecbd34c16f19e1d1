from typing import List

from pydantic import BaseModel

from smartskip.models.media import SkipSegment
from smartskip.models.playback import PlaybackState, SkipDecision


class AnalysisResponse(BaseModel):
    """Acquired media description plus its analysis"""
    filename: str
    mime_type: str
    size: int
    summary: str
    segments: List[SkipSegment]
    progress: List[str] = []


class SessionResponse(BaseModel):
    session_id: str
    state: PlaybackState
    segments: List[SkipSegment] = []


class AdvanceResponse(BaseModel):
    session_id: str
    decision: SkipDecision
    state: PlaybackState


