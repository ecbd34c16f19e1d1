import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from smartskip.config.settings import ResolverConfig, config
from smartskip.core.errors import BackendError, ResolutionExhausted
from smartskip.services.chain import Backend, first_success

logger = logging.getLogger(__name__)


def is_structured_content_type(content_type: Optional[str]) -> bool:
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def parse_resolver_payload(backend: str, data: Dict[str, Any]) -> str:
    """Turn a resolver's JSON status payload into a stream URL"""
    status = data.get("status")

    if status == "error":
        error = data.get("error")
        reason = data.get("text") or (error.get("code") if isinstance(error, dict) else error)
        raise BackendError(backend, reason or "Could not resolve video")

    if status == "picker":
        for item in data.get("picker") or []:
            if isinstance(item, dict) and item.get("type") == "video" and item.get("url"):
                return item["url"]
        raise BackendError(backend, "No video stream found")

    if status in ("stream", "redirect"):
        url = data.get("url")
        if not url:
            raise BackendError(backend, f"'{status}' response without a URL")
        return url

    raise BackendError(backend, f"Unexpected response from resolver (status={status!r})")


class CobaltResolver(Backend):
    """Resolver speaking the cobalt JSON API"""

    def __init__(
        self,
        endpoint: str,
        client: httpx.AsyncClient,
        settings: ResolverConfig = config.resolver,
    ):
        self.endpoint = endpoint
        self.client = client
        self.settings = settings
        self.name = urlparse(endpoint).netloc or endpoint

    def build_body(self, link: str) -> Dict[str, Any]:
        return {
            "url": link,
            "vCodec": self.settings.video_codec,
            "vQuality": self.settings.video_quality,
            "filenamePattern": self.settings.filename_pattern,
            "isAudioOnly": False,
        }

    async def attempt(self, link: str) -> str:
        response = await self.client.post(
            self.endpoint,
            json=self.build_body(link),
            headers={"Accept": "application/json"},
        )

        content_type = response.headers.get("content-type")
        if not is_structured_content_type(content_type):
            raise BackendError(
                self.name,
                f"expected JSON, got {content_type or 'no content type'} (HTTP {response.status_code})"
            )

        try:
            data = response.json()
        except ValueError:
            raise BackendError(self.name, "malformed JSON payload")

        if not isinstance(data, dict):
            raise BackendError(self.name, "JSON payload is not an object")

        return parse_resolver_payload(self.name, data)


class ResolverChain:
    """Resolve a canonical video-sharing link through ordered resolver backends"""

    def __init__(self, backends: List[Backend], timeout: float = config.resolver.timeout_seconds):
        self.backends = list(backends)
        self.timeout = timeout

    @classmethod
    def from_config(cls, client: httpx.AsyncClient, settings: ResolverConfig = config.resolver) -> "ResolverChain":
        backends = [CobaltResolver(endpoint, client, settings) for endpoint in settings.endpoints]
        return cls(backends, timeout=settings.timeout_seconds)

    async def resolve(self, link: str) -> str:
        url = await first_success(self.backends, link, self.timeout, exhausted=ResolutionExhausted)
        logger.info("Stream URL resolved")
        return url
