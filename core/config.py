"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no API keys in code)
"""

import logging
import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://assessment.ksensetech.com/api"
API_KEY_PLACEHOLDER = "your-assessment-api-key-here"


class AssessmentAPIConfig(BaseModel):
    """Remote assessment API connection settings."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    api_key: str = Field(..., description="Static API key sent with every request")
    api_key_header: str = Field(default="x-api-key", description="Header carrying the API key")

    page_size: int = Field(default=5, gt=0, description="Records requested per page")
    request_timeout_seconds: float = Field(
        default=30.0, gt=0.0, description="Per-request HTTP timeout"
    )

    @field_validator("api_key")
    def validate_api_key(cls, v: str) -> str:
        if not v or not v.strip() or v == API_KEY_PLACEHOLDER:
            raise ValueError("Assessment API key must be set in environment or .env file")
        return v.strip()

    @field_validator("base_url")
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")


class FetchPolicyConfig(BaseModel):
    """Retry, backoff and rate-limit policy for the paginated fetch."""

    max_retries: int = Field(default=3, gt=0, description="Failed attempts allowed per page")
    rate_limit_cooldown_seconds: float = Field(
        default=2.0, ge=0.0, description="Fixed wait after a 429 response"
    )
    backoff_base_seconds: float = Field(
        default=1.0, ge=0.0, description="Backoff is this base times the retry count"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    submit_results: bool = Field(
        default=True, description="Send the classification to the submission endpoint"
    )

    # Component configs
    api: AssessmentAPIConfig
    fetch: FetchPolicyConfig = Field(default_factory=FetchPolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    api_config = AssessmentAPIConfig(
        base_url=os.getenv("ASSESSMENT_BASE_URL", DEFAULT_BASE_URL),
        api_key=os.getenv("ASSESSMENT_API_KEY", ""),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30.0")),
    )

    fetch_config = FetchPolicyConfig(
        max_retries=int(os.getenv("FETCH_MAX_RETRIES", "3")),
        rate_limit_cooldown_seconds=float(os.getenv("RATE_LIMIT_COOLDOWN_SECONDS", "2.0")),
        backoff_base_seconds=float(os.getenv("BACKOFF_BASE_SECONDS", "1.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        submit_results=_parse_bool(os.getenv("SUBMIT_RESULTS"), True),
        api=api_config,
        fetch=fetch_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig) -> None:
    """Route structlog through stdlib logging with the configured level and renderer."""
    logging.basicConfig(format="%(message)s", level=config.level, force=True)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configuration validation and helpers
def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"✅ Configuration loaded for {config.environment} environment")
        print("✅ Assessment API key configured")
    except Exception as e:
        print(f"❌ Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\n🔧 CONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")
    print(f"Submit Results: {config.submit_results}")

    print("\n🌐 API CONFIGURATION")
    print(f"Base URL: {config.api.base_url}")
    print(f"Page Size: {config.api.page_size}")
    print(f"Request Timeout: {config.api.request_timeout_seconds}s")

    print("\n🔁 FETCH POLICY")
    print(f"Max Retries: {config.fetch.max_retries}")
    print(f"Rate Limit Cooldown: {config.fetch.rate_limit_cooldown_seconds}s")
    print(f"Backoff Base: {config.fetch.backoff_base_seconds}s")


if __name__ == "__main__":
    # Test configuration loading
    validate_config()
    print_config_summary()
