"""Configuration management for the Nano Banana relay.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the NANOBANANA_ prefix,
allowing the upstream endpoints, the synthetic browser fingerprint, and the
polling budget to be overridden per deployment without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (NANOBANANA_* prefix)
2. .env file in the project root
3. Default values defined in RelayConfig

Example .env file:
    NANOBANANA_POLL_TIMEOUT_MS=180000
    NANOBANANA_POLL_INTERVAL_MS=3000
    NANOBANANA_FALLBACK_IMAGE_URL=https://example.com/seed.jpg
    NANOBANANA_SERVER_PORT=9000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from nanobanana.core.config import config

    print(config.submit_url)
    print(config.poll_timeout_ms)

Upstream Fingerprint
--------------------
The upstream service only answers requests that look like they come from its
own web page.  The header values below mirror a desktop Edge browser and the
cookie template embeds fixed tracking-cookie values next to a per-session
``{anonymous_user_id}`` placeholder that the provider client fills with a
fresh UUID.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_COOKIE_TEMPLATE = (
    "_ga=GA1.1.1802416543.1757653998; "
    "_ga_PZ8PZQP57J=GS2.1.s1757653997$o1$g0$t1757653997$j60$l0$h0; "
    "anonymous_user_id={anonymous_user_id}; "
    "sbox-guid=MTc1NzY1Mzk5OXw0OTJ8OTMxOTE4NDg0; "
    "crisp-client%2Fsession%2Fe48f416d-75e9-492f-9624-e9a4772aef40="
    "session_8314853f-cfcb-4730-a7cb-9accce3fcce4"
)


class RelayConfig(BaseSettings):
    """Main configuration for the Nano Banana relay.

    Values are loaded from environment variables with the NANOBANANA_ prefix,
    with fallback to the defaults defined here.

    Attributes
    ----------
    Service Settings:
        service_name : str
            Human-readable service name reported by ``/`` and ``/health``
        service_description : str
            One-line description reported by ``/``
        server_host : str
            Bind address for the uvicorn server
        server_port : int
            Port for the uvicorn server (1024-65535)
        log_level : str
            Root logging level used by the CLI entry point

    Upstream Generation Service:
        submit_url : str
            Endpoint that accepts a prediction and issues a session id
        status_url : str
            Endpoint polled with ``?session_id=...``
        origin, referer : str
            Browser origin/referer headers expected by the upstream
        user_agent, sec_ch_ua, sec_ch_ua_platform, accept_language : str
            Remaining browser fingerprint headers
        cookie_template : str
            Cookie header template; ``{anonymous_user_id}`` is substituted
        fallback_image_url : str
            Seed image used when the caller does not supply one
        prediction_type, prediction_sub_type : int
            Fixed model selectors sent with every submission
        success_code : int
            ``code`` value the upstream returns on accepted submissions

    Polling:
        poll_timeout_ms : int
            Wall-clock budget for the poll loop in milliseconds
        poll_interval_ms : int
            Sleep between status checks in milliseconds

    Upload Relay:
        upload_url : str
            Multipart upload endpoint of the public file host
        download_referer : str
            Referer header sent when downloading the generated image

    Transport:
        http_timeout : float
            Per-call timeout in seconds for every outbound HTTP request

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = RelayConfig(poll_timeout_ms=1000, poll_interval_ms=10)

    Use the global configuration instance:

        >>> from nanobanana.core.config import config
        >>> config.upload_url
        'https://uguu.se/upload'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NANOBANANA_",
        case_sensitive=False,
    )

    # Service settings
    service_name: str = Field(
        default="Nano Banana Image Generation API",
        description="Service name reported by the metadata and health endpoints",
    )
    service_description: str = Field(
        default="Generate images from text prompts and upload to uguu.se",
        description="Service description reported by the metadata endpoint",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for all interfaces)",
    )
    server_port: int = Field(
        default=8787,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    # Upstream generation service
    submit_url: str = Field(
        default="https://visualgpt.io/api/v1/prediction/handle",
        description="Prediction submission endpoint",
    )
    status_url: str = Field(
        default="https://visualgpt.io/api/v1/prediction/get-status",
        description="Prediction status endpoint",
    )
    origin: str = Field(default="https://visualgpt.io")
    referer: str = Field(default="https://visualgpt.io/ai-models/nano-banana")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36 Edg/140.0.0.0"
        ),
    )
    sec_ch_ua: str = Field(
        default='"Chromium";v="140", "Not=A?Brand";v="24", "Microsoft Edge";v="140"',
    )
    sec_ch_ua_platform: str = Field(default='"Windows"')
    accept_language: str = Field(default="en-US,en;q=0.9,en-IN;q=0.8")
    cookie_template: str = Field(
        default=DEFAULT_COOKIE_TEMPLATE,
        description="Cookie header template with an {anonymous_user_id} placeholder",
    )
    fallback_image_url: str = Field(
        default="https://wallpaperaccess.com/full/1556608.jpg",
        description="Seed image used when the request carries no image_url",
    )
    prediction_type: int = Field(default=61)
    prediction_sub_type: int = Field(default=2)
    success_code: int = Field(default=100000)

    # Polling
    poll_timeout_ms: int = Field(
        default=120_000,
        description="Wall-clock budget for the poll loop",
        ge=0,
    )
    poll_interval_ms: int = Field(
        default=5_000,
        description="Delay between status checks",
        ge=0,
    )

    # Upload relay
    upload_url: str = Field(
        default="https://uguu.se/upload",
        description="Multipart upload endpoint of the public file host",
    )
    download_referer: str = Field(default="https://visualgpt.io")

    # Transport
    http_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for each outbound HTTP call",
        gt=0,
    )


# Global configuration instance
# Loads values from environment variables (NANOBANANA_* prefix) and .env file.
config = RelayConfig()
