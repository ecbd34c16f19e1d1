from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PlaybackMode(str, Enum):
    OFF = "off"
    SKIP_ONLY = "skip_only"
    TURBO = "turbo"


class PlaybackState(BaseModel):
    position: float = 0.0
    is_skip_active: bool = False
    active_reason: Optional[str] = None
    mode: PlaybackMode = PlaybackMode.OFF
    rate: float = 1.0


class SkipDecision(BaseModel):
    """Outcome of one clock advance"""
    jumped: bool = False
    from_position: float
    to_position: float
    reason: Optional[str] = None
