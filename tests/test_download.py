import httpx
import pytest

from smartskip.config.settings import AcquisitionConfig
from smartskip.core.errors import DownloadExhausted
from smartskip.services.download import DirectFetch, DownloadChain, Relay

from helpers import recording_client

MAX_BYTES = 1024 * 1024
RELAYS = ["https://relay1.test/?{url}", "https://relay2.test/raw?url={url}"]


def chain_for(client, relays=RELAYS, max_bytes=MAX_BYTES):
    return DownloadChain(
        DirectFetch(client, max_bytes),
        [Relay(template, client, max_bytes) for template in relays],
        timeout=5.0,
        naming=AcquisitionConfig(),
    )


@pytest.mark.asyncio
async def test_direct_fast_path_skips_relays():
    def handler(request):
        return httpx.Response(200, content=b"webm-bytes", headers={"content-type": "video/webm"})

    client, transport = recording_client(handler)
    async with client:
        media = await chain_for(client).download("https://files.test/media/clip.webm?sig=abc", False)

    assert transport.hosts == ["files.test"]
    assert media.content == b"webm-bytes"
    assert media.filename == "clip.webm"
    assert media.mime_type == "video/webm"


@pytest.mark.asyncio
async def test_failed_direct_fetch_falls_back_to_relays_in_order():
    def handler(request):
        host = request.url.host
        if host == "files.test":
            return httpx.Response(403)
        if host == "relay1.test":
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, content=b"relayed", headers={"content-type": "video/mp4; codecs=avc1"})

    client, transport = recording_client(handler)
    async with client:
        media = await chain_for(client).download("https://files.test/talk.mp4", False)

    assert transport.hosts == ["files.test", "relay1.test", "relay2.test"]
    assert media.content == b"relayed"
    assert media.filename == "talk.mp4"
    assert media.mime_type == "video/mp4"


@pytest.mark.asyncio
async def test_relay_urls_carry_the_encoded_target():
    def handler(request):
        if request.url.host == "files.test":
            raise httpx.ConnectError("blocked", request=request)
        return httpx.Response(200, content=b"ok")

    client, transport = recording_client(handler)
    async with client:
        await chain_for(client).download("https://files.test/a b.mp4?x=1&y=2", False)

    relayed = transport.requests[1].url
    assert relayed.host == "relay1.test"
    assert "https%3A%2F%2Ffiles.test%2Fa%20b.mp4%3Fx%3D1%26y%3D2" in str(relayed)


@pytest.mark.asyncio
async def test_everything_failing_raises_download_exhausted():
    def handler(request):
        if request.url.host == "relay2.test":
            return httpx.Response(404)
        return httpx.Response(500)

    client, transport = recording_client(handler)
    async with client:
        with pytest.raises(DownloadExhausted) as exc_info:
            await chain_for(client).download("https://files.test/talk.mp4", False)

    error = exc_info.value
    assert transport.hosts == ["files.test", "relay1.test", "relay2.test"]
    assert [attempt.backend for attempt in error.attempts] == ["direct", "relay1.test", "relay2.test"]
    assert error.cause.backend == "relay2.test"
    assert error.cause.reason == "HTTP 404"


@pytest.mark.asyncio
async def test_indirect_source_goes_straight_to_relays():
    def handler(request):
        return httpx.Response(200, content=b"stream")

    client, transport = recording_client(handler)
    async with client:
        media = await chain_for(client).download("https://cdn.test/resolved?token=1", True)

    assert transport.hosts == ["relay1.test"]
    assert media.filename == "youtube_video.mp4"
    assert media.mime_type == "video/mp4"


@pytest.mark.asyncio
async def test_filename_defaults_when_path_is_empty():
    def handler(request):
        return httpx.Response(200, content=b"x")

    client, _ = recording_client(handler)
    async with client:
        media = await chain_for(client).download("https://files.test/?file=1", False)

    assert media.filename == "video.mp4"


@pytest.mark.asyncio
async def test_oversized_body_fails_that_attempt():
    def handler(request):
        if request.url.host == "files.test":
            return httpx.Response(200, content=b"x" * 64)
        return httpx.Response(200, content=b"small")

    client, transport = recording_client(handler)
    async with client:
        media = await chain_for(client, max_bytes=16).download("https://files.test/big.mp4", False)

    assert transport.hosts == ["files.test", "relay1.test"]
    assert media.content == b"small"
