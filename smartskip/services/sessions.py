import time
import uuid
from typing import Callable, Dict, Iterable, Tuple

from smartskip.config.settings import PlaybackConfig, config
from smartskip.core.errors import SessionLimitReached, SessionNotFound
from smartskip.models.media import SkipSegment
from smartskip.services.skip_engine import SkipEngine


class PlaybackSessionStore:
    """
    In-memory playback sessions.
    Sessions are per process and lost on restart; playback state is
    short-lived and only meaningful to the viewer driving it. A session
    nobody has touched for `session_ttl_seconds` is dropped.
    """

    def __init__(self, settings: PlaybackConfig = config.playback, clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.clock = clock
        self._sessions: Dict[str, SkipEngine] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        self.evict_idle()
        return len(self._sessions)

    def evict_idle(self) -> int:
        cutoff = self.clock() - self.settings.session_ttl_seconds
        stale = [sid for sid, seen in self._last_seen.items() if seen <= cutoff]
        for session_id in stale:
            self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        return len(stale)

    def create(self, segments: Iterable[SkipSegment]) -> Tuple[str, SkipEngine]:
        self.evict_idle()
        if len(self._sessions) >= self.settings.max_sessions:
            raise SessionLimitReached(f"{self.settings.max_sessions} sessions already open")
        session_id = uuid.uuid4().hex
        engine = SkipEngine(segments, settings=self.settings)
        self._sessions[session_id] = engine
        self._last_seen[session_id] = self.clock()
        return session_id, engine

    def get(self, session_id: str) -> SkipEngine:
        self.evict_idle()
        try:
            engine = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id)
        self._last_seen[session_id] = self.clock()
        return engine

    def delete(self, session_id: str) -> None:
        self._last_seen.pop(session_id, None)
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(session_id)


sessions = PlaybackSessionStore()
