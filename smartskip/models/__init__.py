from .media import AcquiredMedia, AnalysisResult, SkipSegment
from .playback import PlaybackMode, PlaybackState, SkipDecision
from .request import AcquireRequest, AdvanceRequest, RateRequest, SessionRequest
from .response import AdvanceResponse, AnalysisResponse, SessionResponse

__all__ = [
    "AcquiredMedia",
    "AcquireRequest",
    "AdvanceRequest",
    "AdvanceResponse",
    "AnalysisResponse",
    "AnalysisResult",
    "PlaybackMode",
    "PlaybackState",
    "RateRequest",
    "SessionRequest",
    "SessionResponse",
    "SkipDecision",
    "SkipSegment",
]
