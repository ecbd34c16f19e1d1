import functools
import socket

import pytest
from fastapi import HTTPException

from smartskip.api.media import check_reference
from smartskip.config.settings import config
from smartskip.core import security
from smartskip.core.security import SecurityValidator, UrlValidationResult
from smartskip.i18n import i18n


def resolve_to(monkeypatch, *ips):
    def fake_getaddrinfo(host, port, *args, **kwargs):
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (ip, 0)) for ip in ips]

    monkeypatch.setattr(security.socket, "getaddrinfo", fake_getaddrinfo)


@pytest.fixture
def ssrf_on(monkeypatch):
    monkeypatch.setattr(config.security, "enable_ssrf_protection", True)
    monkeypatch.setattr(config.security, "allow_localhost", False)
    monkeypatch.setattr(config.security, "allow_private_ips", False)
    monkeypatch.setattr(security, "get_redis", lambda: None)


@pytest.mark.asyncio
@pytest.mark.parametrize("ip", ["127.0.0.1", "10.0.0.5", "192.168.1.20", "169.254.169.254", "::1"])
async def test_internal_addresses_are_blocked(monkeypatch, ssrf_on, ip):
    resolve_to(monkeypatch, ip)
    assert await SecurityValidator.validate_url("https://media.test/clip.mp4") == UrlValidationResult.BLOCKED


@pytest.mark.asyncio
async def test_public_address_is_allowed(monkeypatch, ssrf_on):
    resolve_to(monkeypatch, "93.184.216.34")
    assert await SecurityValidator.validate_url("https://media.test/clip.mp4") == UrlValidationResult.OK


@pytest.mark.asyncio
async def test_any_internal_address_among_several_blocks(monkeypatch, ssrf_on):
    resolve_to(monkeypatch, "93.184.216.34", "10.1.1.1")
    assert await SecurityValidator.validate_url("https://media.test/clip.mp4") == UrlValidationResult.BLOCKED


@pytest.mark.asyncio
async def test_allow_localhost_lets_loopback_through(monkeypatch, ssrf_on):
    monkeypatch.setattr(config.security, "allow_localhost", True)
    resolve_to(monkeypatch, "127.0.0.1")
    assert await SecurityValidator.validate_url("http://localhost:9000/clip.mp4") == UrlValidationResult.OK


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["ftp://media.test/clip.mp4", "file:///etc/passwd", "https://"])
async def test_non_http_references_are_invalid(ssrf_on, url):
    assert await SecurityValidator.validate_url(url) == UrlValidationResult.INVALID


@pytest.mark.asyncio
async def test_check_reference_maps_blocked_to_403(monkeypatch, ssrf_on):
    resolve_to(monkeypatch, "127.0.0.1")
    _ = functools.partial(i18n.get, locale="en")
    with pytest.raises(HTTPException) as exc_info:
        await check_reference("media.test/clip.mp4", _)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_check_reference_maps_invalid_to_400(ssrf_on):
    _ = functools.partial(i18n.get, locale="en")
    with pytest.raises(HTTPException) as exc_info:
        await check_reference("ftp://media.test/clip.mp4", _)
    assert exc_info.value.status_code == 400
