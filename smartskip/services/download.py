import logging
from typing import List, NamedTuple, Optional
from urllib.parse import quote, urlparse

import httpx

from smartskip.config.settings import AcquisitionConfig, RelayConfig, config
from smartskip.core.errors import BackendError, DownloadExhausted
from smartskip.models.media import AcquiredMedia
from smartskip.services.chain import Backend, first_success
from smartskip.utils.filename import filename_from_url

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class FetchedBody(NamedTuple):
    content: bytes
    content_type: Optional[str]


class DirectFetch(Backend):
    """Plain GET of the media URL"""

    name = "direct"

    def __init__(self, client: httpx.AsyncClient, max_bytes: int):
        self.client = client
        self.max_bytes = max_bytes

    def build_url(self, url: str) -> str:
        return url

    async def attempt(self, url: str) -> FetchedBody:
        target = self.build_url(url)
        async with self.client.stream("GET", target) as response:
            if not response.is_success:
                raise BackendError(self.name, f"HTTP {response.status_code}")

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise BackendError(self.name, f"body of {declared} bytes exceeds limit")

            chunks = []
            received = 0
            async for chunk in response.aiter_bytes(CHUNK_SIZE):
                received += len(chunk)
                if received > self.max_bytes:
                    raise BackendError(self.name, f"body exceeds {self.max_bytes} bytes")
                chunks.append(chunk)

            return FetchedBody(b"".join(chunks), response.headers.get("content-type"))


class Relay(DirectFetch):
    """CORS relay: a URL-rewriting proxy in front of the media URL"""

    def __init__(self, template: str, client: httpx.AsyncClient, max_bytes: int):
        super().__init__(client, max_bytes)
        self.template = template
        self.name = urlparse(template).netloc or template

    def build_url(self, url: str) -> str:
        return self.template.format(url=quote(url, safe=""))


class DownloadChain:
    """Fetch media bytes directly or through ordered relays"""

    def __init__(
        self,
        direct: Backend,
        relays: List[Backend],
        timeout: float = config.relay.timeout_seconds,
        naming: AcquisitionConfig = config.acquisition,
    ):
        self.direct = direct
        self.relays = list(relays)
        self.timeout = timeout
        self.naming = naming

    @classmethod
    def from_config(
        cls,
        client: httpx.AsyncClient,
        settings: RelayConfig = config.relay,
        naming: AcquisitionConfig = config.acquisition,
    ) -> "DownloadChain":
        max_bytes = settings.max_media_mb * 1024 * 1024
        relays = [Relay(template, client, max_bytes) for template in settings.templates]
        return cls(DirectFetch(client, max_bytes), relays, timeout=settings.timeout_seconds, naming=naming)

    def backends_for(self, is_indirect_source: bool) -> List[Backend]:
        # Resolved streams from video-sharing sites always need a relay
        if is_indirect_source:
            return list(self.relays)
        return [self.direct] + self.relays

    def filename_for(self, url: str, is_indirect_source: bool) -> str:
        if is_indirect_source:
            return self.naming.indirect_filename
        return filename_from_url(url) or self.naming.default_filename

    def mime_type_for(self, content_type: Optional[str]) -> str:
        media_type = (content_type or "").split(";", 1)[0].strip()
        return media_type or self.naming.default_mime_type

    async def download(self, url: str, is_indirect_source: bool) -> AcquiredMedia:
        body = await first_success(
            self.backends_for(is_indirect_source),
            url,
            self.timeout,
            exhausted=DownloadExhausted,
        )
        return AcquiredMedia(
            content=body.content,
            filename=self.filename_for(url, is_indirect_source),
            mime_type=self.mime_type_for(body.content_type),
        )
