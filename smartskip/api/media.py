import functools
from typing import Callable
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from smartskip.api.deps import get_acquisition_service, get_analysis_service
from smartskip.config.settings import config
from smartskip.core.errors import (
    AnalysisFailed,
    AnalysisUnavailable,
    ChainExhausted,
    DownloadExhausted,
    ProcessingFailed,
    ProcessingTimeout,
    ResolutionExhausted,
    SmartSkipError,
)
from smartskip.core.logging import log_error, log_info
from smartskip.core.security import SecurityValidator, UrlValidationResult
from smartskip.i18n import i18n
from smartskip.infra.rate_limit import acquire_limiter, analysis_limiter
from smartskip.models.media import AcquiredMedia
from smartskip.models.request import AcquireRequest
from smartskip.models.response import AnalysisResponse
from smartskip.services.acquisition import AcquisitionService, ProgressLog
from smartskip.services.analysis import AnalysisService
from smartskip.services.link import with_scheme
from smartskip.utils.filename import sanitize_filename
from smartskip.utils.locale import get_locale, safe_url_for_log

router = APIRouter()


def to_http_exception(error: SmartSkipError, _: Callable[..., str]) -> HTTPException:
    """Map pipeline failures onto HTTP errors with a localized detail"""
    if isinstance(error, ChainExhausted):
        detail = str(error.cause) if error.cause else str(error)
        if isinstance(error, ResolutionExhausted):
            return HTTPException(status_code=502, detail=_("error.resolution_failed", detail=detail))
        if isinstance(error, DownloadExhausted):
            return HTTPException(status_code=502, detail=_("error.download_failed", detail=detail))
    if isinstance(error, ProcessingTimeout):
        return HTTPException(status_code=504, detail=_("error.processing_timeout"))
    if isinstance(error, ProcessingFailed):
        return HTTPException(status_code=502, detail=_("error.processing_failed", state=error.state))
    if isinstance(error, AnalysisUnavailable):
        return HTTPException(status_code=503, detail=_("error.analysis_unavailable"))
    if isinstance(error, AnalysisFailed):
        return HTTPException(status_code=502, detail=_("error.analysis_failed", detail=str(error)))
    return HTTPException(status_code=500, detail=str(error))


async def check_reference(reference: str, _: Callable[..., str]) -> None:
    validation_result = await SecurityValidator.validate_url(with_scheme(reference))

    if validation_result == UrlValidationResult.BLOCKED:
        raise HTTPException(status_code=403, detail=_("error.private_ip"))
    if validation_result == UrlValidationResult.INVALID:
        raise HTTPException(status_code=400, detail=_("error.invalid_url", reason="Invalid format"))


async def run_analysis(
    request: Request,
    media: AcquiredMedia,
    service: AnalysisService,
    progress: ProgressLog,
    _: Callable[..., str],
) -> AnalysisResponse:
    try:
        result = await service.analyze(media, progress)
    except SmartSkipError as e:
        log_error(request, f"Analysis error: {str(e)}")
        raise to_http_exception(e, _)

    log_info(request, _("log.analyzed", count=len(result.segments)))
    return AnalysisResponse(
        filename=media.filename,
        mime_type=media.mime_type,
        size=media.size,
        summary=result.summary,
        segments=result.segments,
        progress=progress.messages,
    )


async def acquire_reference(
    request: Request,
    reference: str,
    service: AcquisitionService,
    progress: ProgressLog,
    _: Callable[..., str],
) -> AcquiredMedia:
    await check_reference(reference, _)
    log_info(request, _("log.acquiring", url=safe_url_for_log(reference)))

    try:
        media = await service.acquire(reference, progress)
    except SmartSkipError as e:
        log_error(request, f"Acquisition error: {str(e)}")
        raise to_http_exception(e, _)

    log_info(request, _("log.acquired", filename=media.filename, size=media.size, mime_type=media.mime_type))
    return media


@router.post("/acquire", dependencies=[Depends(acquire_limiter)])
async def acquire_media(
    request: Request,
    acquire_request: AcquireRequest,
    service: AcquisitionService = Depends(get_acquisition_service),
):
    """Fetch the media behind a direct URL or video-sharing link"""
    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    progress = ProgressLog()
    media = await acquire_reference(request, acquire_request.reference, service, progress, _)

    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(media.filename)}",
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "no-cache",
        "X-Progress": ",".join(quote(message) for message in progress.messages),
    }
    return Response(content=media.content, media_type=media.mime_type, headers=headers)


@router.post("/analyze", response_model=AnalysisResponse, dependencies=[Depends(analysis_limiter)])
async def analyze_reference(
    request: Request,
    acquire_request: AcquireRequest,
    acquisition: AcquisitionService = Depends(get_acquisition_service),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """Acquire media by reference, then find the segments worth skipping"""
    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    progress = ProgressLog()
    media = await acquire_reference(request, acquire_request.reference, acquisition, progress, _)
    return await run_analysis(request, media, analysis, progress, _)


@router.post("/analyze/upload", response_model=AnalysisResponse, dependencies=[Depends(analysis_limiter)])
async def analyze_upload(
    request: Request,
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """Analyze a local upload sent as the raw request body"""
    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    max_mb = config.analysis.max_upload_mb
    max_bytes = max_mb * 1024 * 1024
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(status_code=413, detail=_("error.upload_too_large", max_mb=max_mb))

    content = await request.body()
    if not content:
        raise HTTPException(status_code=400, detail=_("error.empty_upload"))
    if len(content) > max_bytes:
        raise HTTPException(status_code=413, detail=_("error.upload_too_large", max_mb=max_mb))

    mime_type = (request.headers.get("content-type") or "").split(";", 1)[0].strip()
    media = AcquiredMedia(
        content=content,
        filename=sanitize_filename(request.headers.get("x-filename", "")) or config.acquisition.default_filename,
        mime_type=mime_type or config.acquisition.default_mime_type,
    )
    log_info(request, _("log.acquired", filename=media.filename, size=media.size, mime_type=media.mime_type))

    return await run_analysis(request, media, analysis, ProgressLog(), _)
