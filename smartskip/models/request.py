from typing import List
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from smartskip.models.media import SkipSegment
from smartskip.services.link import with_scheme


class AcquireRequest(BaseModel):
    reference: str = Field(..., min_length=1, description="Direct media URL or video-sharing link")

    @field_validator("reference")
    @classmethod
    def validate_reference_syntax(cls, v):
        """Syntax only; SSRF check happens at the endpoint. Bare references gain https"""
        v = v.strip()
        if any(c.isspace() for c in v):
            raise ValueError("URL must not contain whitespace")
        v = with_scheme(v)
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid URL format")
        return v


class SessionRequest(BaseModel):
    segments: List[SkipSegment] = Field(default_factory=list, description="Segments to skip")


class AdvanceRequest(BaseModel):
    position: float = Field(..., ge=0, description="Current playback position in seconds")


class RateRequest(BaseModel):
    rate: float = Field(..., gt=0, le=16, description="Playback rate multiplier")
