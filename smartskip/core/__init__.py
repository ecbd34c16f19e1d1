from .errors import (
    AnalysisFailed,
    AnalysisUnavailable,
    BackendError,
    ChainExhausted,
    DownloadExhausted,
    ProcessingFailed,
    ProcessingTimeout,
    ResolutionExhausted,
    SessionLimitReached,
    SessionNotFound,
    SmartSkipError,
)

__all__ = [
    "AnalysisFailed",
    "AnalysisUnavailable",
    "BackendError",
    "ChainExhausted",
    "DownloadExhausted",
    "ProcessingFailed",
    "ProcessingTimeout",
    "ResolutionExhausted",
    "SessionLimitReached",
    "SessionNotFound",
    "SmartSkipError",
]
