import asyncio
import base64
import logging
import os
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from smartskip.config.settings import AnalysisConfig, config
from smartskip.core.errors import (
    AnalysisFailed,
    AnalysisUnavailable,
    ProcessingFailed,
    ProcessingTimeout,
)
from smartskip.i18n import i18n
from smartskip.infra.redis import get_redis
from smartskip.models.media import AcquiredMedia, AnalysisResult
from smartskip.services.acquisition import ProgressSink
from smartskip.utils.hash import hash_bytes

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """
Analyze the audio and visual content of this video.
Identify segments that are "insignificant" to the core narrative or information flow.
Insignificant segments include:
1. Long periods of silence.
2. Filler words (um, uh) or stalling.
3. Repetitive redundant sentences.
4. Long pauses between sentences.
5. Intro/Outro music without speech (if long).

The goal is to create a list of timestamps to skip so the viewer can watch a condensed version.

Return the result strictly as a JSON object.
"""

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "A very brief 1-sentence summary of what the video is about.",
        },
        "segments": {
            "type": "ARRAY",
            "description": "List of time segments to skip.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "start": {"type": "NUMBER", "description": "Start time in seconds"},
                    "end": {"type": "NUMBER", "description": "End time in seconds"},
                    "reason": {
                        "type": "STRING",
                        "description": "Short reason for skipping (e.g., 'Silence', 'Filler')",
                    },
                },
                "required": ["start", "end", "reason"],
            },
        },
    },
    "required": ["summary", "segments"],
}

FILE_STATE_PROCESSING = "PROCESSING"
FILE_STATE_ACTIVE = "ACTIVE"


def error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
        message = error.get("message") if isinstance(error, dict) else str(error)
    except (ValueError, AttributeError):
        message = None
    return f"HTTP {response.status_code}: {message or response.reason_phrase}"


def extract_text(payload: Dict[str, Any]) -> str:
    """Concatenated text parts of the first candidate"""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class AnalysisService:
    """
    Client for the content-analysis collaborator (Gemini REST API).

    Small media is sent inline; anything above the inline limit goes
    through a resumable upload and is polled until the service marks it
    active.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: AnalysisConfig = config.analysis,
        locale: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.settings = settings
        self.locale = locale
        self.sleep = sleep
        self.clock = clock

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.api_key or os.getenv("GEMINI_API_KEY")

    def _report(self, report: Optional[ProgressSink], key: str) -> None:
        message = i18n.get(key, locale=self.locale)
        logger.info(message)
        if report is not None:
            report(message)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        params = {"key": self.api_key, **kwargs.pop("params", {})}
        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                timeout=self.settings.request_timeout_seconds,
                **kwargs
            )
        except httpx.HTTPError as e:
            raise AnalysisFailed(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise AnalysisFailed(error_message(response))
        return response

    async def analyze(self, media: AcquiredMedia, report: Optional[ProgressSink] = None) -> AnalysisResult:
        if not self.api_key:
            raise AnalysisUnavailable("Analysis API key not configured")

        cache_key = f"analysis:{hash_bytes(media.content)}"
        redis = get_redis()
        if redis:
            try:
                cached = await redis.get(cache_key)
                if cached:
                    return AnalysisResult.model_validate_json(cached)
            except Exception as e:
                logger.debug(f"Analysis cache read failed: {e}")

        if media.size > self.settings.inline_limit_mb * 1024 * 1024:
            part = await self.upload(media, report)
        else:
            self._report(report, "progress.encoding")
            part = {
                "inline_data": {
                    "mime_type": media.mime_type,
                    "data": base64.b64encode(media.content).decode("ascii"),
                }
            }

        self._report(report, "progress.analyzing")
        result = await self.generate(part)

        if redis and self.settings.cache_ttl_seconds:
            try:
                await redis.setex(cache_key, self.settings.cache_ttl_seconds, result.model_dump_json())
            except Exception as e:
                logger.debug(f"Analysis cache write failed: {e}")

        return result

    async def upload(self, media: AcquiredMedia, report: Optional[ProgressSink] = None) -> Dict[str, Any]:
        """Resumable upload; returns a file_data part once the file is active"""
        self._report(report, "progress.uploading")

        start = await self._send(
            "POST",
            self.settings.upload_url,
            headers={
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(media.size),
                "X-Goog-Upload-Header-Content-Type": media.mime_type,
            },
            json={"file": {"display_name": media.filename}},
        )
        session_url = start.headers.get("x-goog-upload-url")
        if not session_url:
            raise AnalysisFailed("Upload session was not created")

        finished = await self._send(
            "POST",
            session_url,
            headers={
                "X-Goog-Upload-Offset": "0",
                "X-Goog-Upload-Command": "upload, finalize",
            },
            content=media.content,
        )
        try:
            uploaded = finished.json()["file"]
        except (ValueError, KeyError, TypeError):
            raise AnalysisFailed("Upload response did not describe a file")

        uploaded = await self.wait_until_active(uploaded, report)
        return {
            "file_data": {
                "file_uri": uploaded["uri"],
                "mime_type": uploaded.get("mimeType") or media.mime_type,
            }
        }

    async def wait_until_active(self, uploaded: Dict[str, Any], report: Optional[ProgressSink] = None) -> Dict[str, Any]:
        deadline = self.clock() + self.settings.processing_timeout_seconds
        state = uploaded.get("state")
        name = uploaded.get("name")

        while state == FILE_STATE_PROCESSING:
            if not name:
                raise AnalysisFailed("Processing file has no name to poll")
            if self.clock() >= deadline:
                raise ProcessingTimeout(
                    f"{name} still processing after "
                    f"{self.settings.processing_timeout_seconds:g}s"
                )
            self._report(report, "progress.processing")
            await self.sleep(self.settings.poll_interval_seconds)

            response = await self._send("GET", f"{self.settings.base_url}/{name}")
            try:
                uploaded = response.json()
            except ValueError:
                raise AnalysisFailed("File status response was not JSON")
            if not isinstance(uploaded, dict):
                raise AnalysisFailed("File status response was not an object")
            state = uploaded.get("state")

        if state != FILE_STATE_ACTIVE:
            raise ProcessingFailed(state or "UNKNOWN")
        if not uploaded.get("uri"):
            raise AnalysisFailed("Active file has no URI")
        return uploaded

    async def generate(self, part: Dict[str, Any]) -> AnalysisResult:
        response = await self._send(
            "POST",
            f"{self.settings.base_url}/models/{self.settings.model}:generateContent",
            json={
                "contents": [{"parts": [part, {"text": ANALYSIS_PROMPT}]}],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "responseSchema": RESPONSE_SCHEMA,
                },
            },
        )

        try:
            text = extract_text(response.json())
        except (ValueError, AttributeError):
            raise AnalysisFailed("Malformed response from analysis service")
        if not text:
            raise AnalysisFailed("No response from analysis service")

        try:
            return AnalysisResult.model_validate_json(text)
        except ValidationError as e:
            raise AnalysisFailed(f"Unusable analysis payload: {e.error_count()} errors") from e
