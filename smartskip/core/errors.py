from typing import List, Optional


class SmartSkipError(Exception):
    """Base error for acquisition and analysis failures"""


class BackendError(SmartSkipError):
    """A single resolver or relay attempt failed"""

    def __init__(self, backend: str, reason: str):
        self.backend = backend
        self.reason = reason
        super().__init__(f"{backend}: {reason}")


class ChainExhausted(SmartSkipError):
    """Every backend of a fallback chain failed"""

    summary = "All backends failed"

    def __init__(self, attempts: List[BackendError]):
        self.attempts = list(attempts)
        self.cause: Optional[BackendError] = self.attempts[-1] if self.attempts else None
        detail = str(self.cause) if self.cause else "no backends configured"
        super().__init__(f"{self.summary} (last error: {detail})")


class ResolutionExhausted(ChainExhausted):
    summary = "Could not resolve video link"


class DownloadExhausted(ChainExhausted):
    summary = "Could not download media"


class ProcessingTimeout(SmartSkipError):
    """Uploaded media never left the processing state"""


class ProcessingFailed(SmartSkipError):
    """Uploaded media reached a terminal state other than active"""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Video processing failed on server. State: {state}")


class AnalysisFailed(SmartSkipError):
    """The analysis service returned no usable payload"""


class AnalysisUnavailable(AnalysisFailed):
    """No credentials configured for the analysis service"""


class SessionNotFound(SmartSkipError):
    """Unknown playback session id"""


class SessionLimitReached(SmartSkipError):
    """Playback session store is full"""
