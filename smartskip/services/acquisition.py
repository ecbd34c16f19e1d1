import logging
from typing import Callable, List, Optional

import httpx

from smartskip.i18n import i18n
from smartskip.models.media import AcquiredMedia
from smartskip.services.download import DownloadChain
from smartskip.services.link import is_indirect, normalize, with_scheme
from smartskip.services.resolver import ResolverChain
from smartskip.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], None]


class ProgressLog:
    """Progress sink that keeps every message, in order"""

    def __init__(self):
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


class AcquisitionService:
    """
    Turn a media reference into bytes.

    Video-sharing links are normalized and resolved to a stream URL first;
    a failed resolution ends the pipeline without any download attempt.
    Errors from either chain propagate unchanged.
    """

    def __init__(self, resolver: ResolverChain, downloader: DownloadChain, locale: Optional[str] = None):
        self.resolver = resolver
        self.downloader = downloader
        self.locale = locale

    @classmethod
    def from_client(cls, client: httpx.AsyncClient, locale: Optional[str] = None) -> "AcquisitionService":
        return cls(ResolverChain.from_config(client), DownloadChain.from_config(client), locale=locale)

    def _report(self, report: Optional[ProgressSink], key: str) -> None:
        message = i18n.get(key, locale=self.locale)
        logger.info(message)
        if report is not None:
            report(message)

    async def acquire(self, reference: str, report: Optional[ProgressSink] = None) -> AcquiredMedia:
        reference = with_scheme(reference)
        indirect = is_indirect(reference)
        url = reference

        if indirect:
            link = normalize(reference)
            self._report(report, "progress.resolving")
            url = await self.resolver.resolve(link)

        self._report(report, "progress.downloading")
        media = await self.downloader.download(url, indirect)

        logger.debug(
            f"Acquired {media.filename} ({media.size} bytes, {media.mime_type}) "
            f"from {safe_url_for_log(reference)}"
        )
        return media
