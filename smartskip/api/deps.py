from fastapi import Request

from smartskip.infra.http import get_http_client
from smartskip.services.acquisition import AcquisitionService
from smartskip.services.analysis import AnalysisService
from smartskip.services.sessions import PlaybackSessionStore, sessions
from smartskip.utils.locale import get_locale


def get_acquisition_service(request: Request) -> AcquisitionService:
    locale = get_locale(request.headers.get("accept-language"))
    return AcquisitionService.from_client(get_http_client(), locale=locale)


def get_analysis_service(request: Request) -> AnalysisService:
    locale = get_locale(request.headers.get("accept-language"))
    return AnalysisService(get_http_client(), locale=locale)


def get_session_store() -> PlaybackSessionStore:
    return sessions
