import json

import httpx
import pytest

from smartskip.config.settings import AcquisitionConfig, ResolverConfig
from smartskip.core.errors import DownloadExhausted, ResolutionExhausted
from smartskip.services.acquisition import AcquisitionService, ProgressLog
from smartskip.services.download import DirectFetch, DownloadChain, Relay
from smartskip.services.resolver import CobaltResolver, ResolverChain

from helpers import json_response, recording_client

MAX_BYTES = 1024 * 1024


def build_service(client, resolvers=("resolver-a.test", "resolver-b.test"), relays=("https://relay.test/?url={url}",)):
    resolver = ResolverChain(
        [CobaltResolver(f"https://{host}/api/json", client, ResolverConfig()) for host in resolvers],
        timeout=5.0,
    )
    downloader = DownloadChain(
        DirectFetch(client, MAX_BYTES),
        [Relay(template, client, MAX_BYTES) for template in relays],
        timeout=5.0,
        naming=AcquisitionConfig(),
    )
    return AcquisitionService(resolver, downloader, locale="en")


@pytest.mark.asyncio
async def test_short_link_end_to_end():
    """youtu.be link: normalize, resolver A fails, B resolves, relay delivers"""
    def handler(request):
        host = request.url.host
        if host == "resolver-a.test":
            return json_response({"status": "error", "text": "unavailable"})
        if host == "resolver-b.test":
            return json_response({"status": "stream", "url": "https://cdn/x.mp4"})
        if host == "relay.test":
            return httpx.Response(200, content=b"mp4-bytes", headers={"content-type": "video/mp4"})
        raise AssertionError(f"unexpected request to {request.url}")

    client, transport = recording_client(handler)
    progress = ProgressLog()
    async with client:
        media = await build_service(client).acquire("https://youtu.be/abc123", progress)

    assert media.filename == "youtube_video.mp4"
    assert media.mime_type == "video/mp4"
    assert media.content == b"mp4-bytes"
    assert progress.messages == ["Resolving...", "Downloading..."]

    assert transport.hosts == ["resolver-a.test", "resolver-b.test", "relay.test"]
    for request in transport.requests[:2]:
        assert json.loads(request.content)["url"] == "https://www.youtube.com/watch?v=abc123"
    assert "https%3A%2F%2Fcdn%2Fx.mp4" in str(transport.requests[2].url)


@pytest.mark.asyncio
async def test_failed_resolution_never_downloads():
    def handler(request):
        if request.url.host.startswith("resolver"):
            return json_response({"status": "error", "text": "private video"})
        raise AssertionError("download attempted after failed resolution")

    client, transport = recording_client(handler)
    progress = ProgressLog()
    async with client:
        with pytest.raises(ResolutionExhausted) as exc_info:
            await build_service(client).acquire("https://www.youtube.com/watch?v=abc123", progress)

    assert exc_info.value.cause.reason == "private video"
    assert transport.hosts == ["resolver-a.test", "resolver-b.test"]
    assert progress.messages == ["Resolving..."]


@pytest.mark.asyncio
async def test_direct_reference_skips_resolution():
    def handler(request):
        if request.url.host == "files.test":
            return httpx.Response(200, content=b"data", headers={"content-type": "video/quicktime"})
        raise AssertionError(f"unexpected request to {request.url}")

    client, transport = recording_client(handler)
    progress = ProgressLog()
    async with client:
        media = await build_service(client).acquire("https://files.test/clips/holiday.mov", progress)

    assert transport.hosts == ["files.test"]
    assert media.filename == "holiday.mov"
    assert media.mime_type == "video/quicktime"
    assert progress.messages == ["Downloading..."]


@pytest.mark.asyncio
async def test_download_failure_propagates_unchanged():
    def handler(request):
        if request.url.host.startswith("resolver"):
            return json_response({"status": "redirect", "url": "https://cdn.test/x.mp4"})
        return httpx.Response(503)

    client, _ = recording_client(handler)
    async with client:
        with pytest.raises(DownloadExhausted) as exc_info:
            await build_service(client).acquire("https://youtu.be/abc123")

    assert exc_info.value.cause.backend == "relay.test"


@pytest.mark.asyncio
async def test_progress_messages_follow_locale():
    def handler(request):
        return httpx.Response(200, content=b"data")

    client, _ = recording_client(handler)
    progress = ProgressLog()
    service = build_service(client)
    service.locale = "ja"
    async with client:
        await service.acquire("https://files.test/a.mp4", progress)

    assert progress.messages == ["ダウンロードしています..."]


@pytest.mark.asyncio
async def test_bare_direct_reference_is_fetched_from_its_own_host():
    def handler(request):
        if request.url.host == "cdn.example.com":
            return httpx.Response(200, content=b"clip", headers={"content-type": "video/mp4"})
        raise AssertionError(f"unexpected request to {request.url}")

    client, transport = recording_client(handler)
    progress = ProgressLog()
    async with client:
        media = await build_service(client).acquire("cdn.example.com/clip.mp4", progress)

    assert transport.hosts == ["cdn.example.com"]
    assert str(transport.requests[0].url) == "https://cdn.example.com/clip.mp4"
    assert media.filename == "clip.mp4"
    assert progress.messages == ["Downloading..."]
