from typing import List

from pydantic import BaseModel, Field


class AcquiredMedia(BaseModel):
    """Downloaded media, owned by the caller"""
    content: bytes = Field(repr=False)
    filename: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class SkipSegment(BaseModel):
    """
    Half-open interval [start, end) to omit during playback.
    Bounds are not validated against each other; the skip engine treats
    an inverted or empty interval as never matching.
    """
    start: float
    end: float
    reason: str = ""


class AnalysisResult(BaseModel):
    """Both fields must be present; an empty segment list is a valid answer"""
    summary: str
    segments: List[SkipSegment]
