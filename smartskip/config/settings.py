import json
import logging
import os
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "config.json")


class RedisConfig(BaseModel):
    url: str = Field(default="redis://redis:6379", description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=True, description="Enable rate limiting")
    max_requests: int = Field(default=5, ge=1, description="Max requests per window")
    window_seconds: int = Field(default=60, ge=1, description="Rate limit window in seconds")
    analysis_max_requests: int = Field(default=2, ge=1, description="Max analysis requests per window")


class ResolverConfig(BaseModel):
    endpoints: List[str] = Field(
        default=[
            "https://api.cobalt.tools/api/json",
            "https://co.wuk.sh/api/json",
            "https://cobalt-api.kwiatekmiki.com/api/json",
        ],
        description="Resolver backends, tried in order",
    )
    filename_pattern: str = Field(default="basic", description="Filename pattern hint sent to resolvers")
    video_codec: str = Field(default="h264", description="Preferred video codec")
    video_quality: str = Field(default="480", description="Preferred video quality (keeps files small)")
    timeout_seconds: float = Field(default=15.0, gt=0, description="Ceiling per resolver attempt")


class RelayConfig(BaseModel):
    templates: List[str] = Field(
        default=[
            "https://corsproxy.io/?{url}",
            "https://api.allorigins.win/raw?url={url}",
            "https://api.codetabs.com/v1/proxy?quest={url}",
        ],
        description="Relay URL templates, tried in order; {url} receives the encoded target",
    )
    timeout_seconds: float = Field(default=15.0, gt=0, description="Ceiling per download attempt")
    max_media_mb: int = Field(default=200, ge=1, description="Largest body accepted from a single attempt")

    @field_validator("templates")
    @classmethod
    def validate_templates(cls, v):
        for template in v:
            if "{url}" not in template:
                raise ValueError(f"Relay template must contain '{{url}}': {template}")
        return v


class AcquisitionConfig(BaseModel):
    indirect_filename: str = Field(default="youtube_video.mp4", description="Filename for resolved video-sharing links")
    default_filename: str = Field(default="video.mp4", description="Filename when the URL has no usable path segment")
    default_mime_type: str = Field(default="video/mp4", description="MIME type when none is declared")


class AnalysisConfig(BaseModel):
    api_key: Optional[str] = Field(default=None, description="Analysis service API key")
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta", description="Analysis API base URL")
    upload_url: str = Field(default="https://generativelanguage.googleapis.com/upload/v1beta/files", description="Media upload URL")
    model: str = Field(default="gemini-2.5-flash", description="Model used for analysis")
    inline_limit_mb: int = Field(default=20, ge=1, description="Media above this size is uploaded instead of inlined")
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Upload state polling interval")
    processing_timeout_seconds: float = Field(default=600.0, gt=0, description="Give up waiting for uploaded media after this")
    request_timeout_seconds: float = Field(default=300.0, gt=0, description="Timeout for analysis requests")
    max_upload_mb: int = Field(default=200, ge=1, description="Largest media accepted for analysis")
    cache_ttl_seconds: int = Field(default=86400, ge=0, description="Analysis result cache TTL")


class PlaybackConfig(BaseModel):
    base_rate: float = Field(default=1.0, gt=0, description="Normal playback rate")
    turbo_rate: float = Field(default=2.0, gt=0, description="Playback rate forced by turbo mode")
    acknowledgement_seconds: float = Field(default=0.8, ge=0, description="How long a skip notice stays visible")
    max_sessions: int = Field(default=1000, ge=1, description="Max concurrent playback sessions")
    session_ttl_seconds: float = Field(default=3600.0, gt=0, description="Idle time after which a session is dropped")


class SecurityConfig(BaseModel):
    enable_ssrf_protection: bool = Field(default=True, description="Enable SSRF protection")
    allow_private_ips: bool = Field(default=False, description="Allow private IP ranges")
    allow_localhost: bool = Field(default=False, description="Allow localhost access")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: list = Field(default=["en", "ja"], description="Supported locales")


class ApiConfig(BaseModel):
    title: str = Field(default="SmartSkip API", description="API title")
    description: str = Field(default="Media acquisition and segment-skip playback API", description="API description")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: list = Field(default=["*"], description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode")


class Config(BaseSettings):
    """Main configuration model"""
    model_config = SettingsConfigDict(env_prefix="SMARTSKIP_", env_nested_delimiter="__")

    redis: RedisConfig = Field(default_factory=RedisConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    acquisition: AcquisitionConfig = Field(default_factory=AcquisitionConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file"""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
            return cls(**config_data)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load config from {config_path}: {str(e)}")
            logger.info("Using environment/default configuration")
            return cls()

    def save_to_file(self, config_path: str = "config.json"):
        """Save configuration to JSON file"""
        try:
            with open(config_path, "w", encoding="utf-8") as f:
                json.dump(self.as_dict(), f, indent=2, ensure_ascii=False)
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {str(e)}")

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def load_config() -> Config:
    """Load configuration with priority: config.json > env vars > defaults"""
    if os.path.exists(CONFIG_PATH):
        return Config.load_from_file(CONFIG_PATH)
    logger.info(f"Config file not found at {CONFIG_PATH}, checking environment variables")
    return Config()


# Global config instance
config = load_config()
