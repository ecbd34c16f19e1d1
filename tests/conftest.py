import pytest

from smartskip.config.settings import config


@pytest.fixture(autouse=True)
def no_ssrf_dns(monkeypatch):
    """Test hosts are fictional; skip DNS-based SSRF checks"""
    monkeypatch.setattr(config.security, "enable_ssrf_protection", False)
