import threading
import time
from typing import Callable, Iterable, List, Optional, Sequence

from smartskip.config.settings import PlaybackConfig, config
from smartskip.models.media import SkipSegment
from smartskip.models.playback import PlaybackMode, PlaybackState, SkipDecision


def find_segment(segments: Sequence[SkipSegment], position: float) -> Optional[SkipSegment]:
    """
    First segment, in list order, whose [start, end) contains position.
    Overlaps are won by the earlier list entry, not the later start.
    """
    for segment in segments:
        if segment.start <= position < segment.end:
            return segment
    return None


class SkipEngine:
    """
    Segment-skip state machine for one playback session.

    Modes change only on explicit toggles. Every clock advance while a
    mode other than OFF is active jumps at most once, to the end of the
    matching segment; a landing point inside another segment is handled
    by the next advance. All mutation goes through the public methods,
    which are serialized on an internal lock.
    """

    def __init__(
        self,
        segments: Iterable[SkipSegment] = (),
        settings: PlaybackConfig = config.playback,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.clock = clock
        self._lock = threading.Lock()
        self._segments: List[SkipSegment] = list(segments)
        self._state = PlaybackState(rate=settings.base_rate)
        self._acknowledged_until: Optional[float] = None

    @property
    def segments(self) -> List[SkipSegment]:
        return list(self._segments)

    @property
    def state(self) -> PlaybackState:
        with self._lock:
            self._expire_acknowledgement()
            return self._state.model_copy()

    def _expire_acknowledgement(self) -> None:
        if self._acknowledged_until is not None and self.clock() >= self._acknowledged_until:
            self._state.is_skip_active = False
            self._state.active_reason = None
            self._acknowledged_until = None

    def load(self, segments: Iterable[SkipSegment]) -> PlaybackState:
        """New media source: replace the segments and start over"""
        with self._lock:
            self._segments = list(segments)
            self._state = PlaybackState(rate=self.settings.base_rate)
            self._acknowledged_until = None
            return self._state.model_copy()

    def advance(self, position: float) -> SkipDecision:
        with self._lock:
            self._expire_acknowledgement()
            self._state.position = position

            if self._state.mode == PlaybackMode.OFF:
                return SkipDecision(from_position=position, to_position=position)

            segment = find_segment(self._segments, position)
            if segment is None:
                return SkipDecision(from_position=position, to_position=position)

            self._state.position = segment.end
            self._state.is_skip_active = True
            self._state.active_reason = segment.reason
            # A later skip extends the notice instead of being cut short
            self._acknowledged_until = self.clock() + self.settings.acknowledgement_seconds

            return SkipDecision(
                jumped=True,
                from_position=position,
                to_position=segment.end,
                reason=segment.reason,
            )

    def toggle_skip(self) -> PlaybackState:
        with self._lock:
            if self._state.mode == PlaybackMode.OFF:
                self._state.mode = PlaybackMode.SKIP_ONLY
            elif self._state.mode == PlaybackMode.SKIP_ONLY:
                self._state.mode = PlaybackMode.OFF
            else:
                self._state.mode = PlaybackMode.OFF
                self._state.rate = self.settings.base_rate
            return self._state.model_copy()

    def toggle_turbo(self) -> PlaybackState:
        with self._lock:
            if self._state.mode == PlaybackMode.TURBO:
                self._state.mode = PlaybackMode.OFF
                self._state.rate = self.settings.base_rate
            else:
                self._state.mode = PlaybackMode.TURBO
                self._state.rate = self.settings.turbo_rate
            return self._state.model_copy()

    def set_rate(self, rate: float) -> PlaybackState:
        """Manual speed choice; leaving turbo keeps skipping on"""
        if rate <= 0:
            raise ValueError("Playback rate must be positive")
        with self._lock:
            if self._state.mode == PlaybackMode.TURBO:
                self._state.mode = PlaybackMode.SKIP_ONLY
            self._state.rate = rate
            return self._state.model_copy()
