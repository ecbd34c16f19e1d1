import asyncio
import ipaddress
import socket
from enum import Enum, auto
from urllib.parse import urlparse

from smartskip.config.settings import config
from smartskip.infra.redis import get_redis
from smartskip.utils.hash import hash_stable

SSRF_CACHE_TTL = 300


class UrlValidationResult(Enum):
    """URL validation result without throwing exceptions"""
    OK = auto()
    BLOCKED = auto()
    INVALID = auto()


class SecurityValidator:
    """
    Validate user-supplied media references before anything is fetched.
    Relays and resolvers are fixed by configuration; only the reference
    itself can point somewhere it should not.
    """

    @staticmethod
    async def validate_url(url: str) -> UrlValidationResult:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            return UrlValidationResult.INVALID

        if not config.security.enable_ssrf_protection:
            return UrlValidationResult.OK

        hostname = parsed.hostname
        redis = get_redis()
        cache_key = f"ssrf:{hash_stable(hostname)}"
        if redis:
            try:
                cached = await redis.get(cache_key)
                if cached == "ok":
                    return UrlValidationResult.OK
                if cached == "blocked":
                    return UrlValidationResult.BLOCKED
            except Exception:
                redis = None

        try:
            addr_info = await asyncio.to_thread(socket.getaddrinfo, hostname, None)
            ips = [info[4][0] for info in addr_info]
        except socket.gaierror:
            # Unresolvable here; every fetch attempt will fail on its own
            return UrlValidationResult.OK

        is_blocked = False
        for ip_str in ips:
            try:
                ip = ipaddress.ip_address(ip_str.split("%")[0])
            except ValueError:
                return UrlValidationResult.INVALID

            if ip.is_loopback:
                if not config.security.allow_localhost:
                    is_blocked = True
                    break
            elif ip.is_private and not config.security.allow_private_ips:
                is_blocked = True
                break

            if ip.is_link_local or ip.is_multicast:
                is_blocked = True
                break

        if redis:
            try:
                await redis.setex(cache_key, SSRF_CACHE_TTL, "blocked" if is_blocked else "ok")
            except Exception:
                pass

        return UrlValidationResult.BLOCKED if is_blocked else UrlValidationResult.OK
