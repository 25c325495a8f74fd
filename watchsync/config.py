"""
Relay Settings

Environment-based configuration for the relay service.

Environment variables (a .env file in the working directory is honoured):
- WATCHSYNC_HOST: Bind address (default: "0.0.0.0")
- WATCHSYNC_PORT: Listen port (default: 3000)
- WATCHSYNC_CORS_ORIGINS: Comma-separated allowed origins (default: "*")
- WATCHSYNC_SESSION_ID_LENGTH: Length of generated session handles (default: 10)
- WATCHSYNC_MAX_QUEUE_SIZE: Outbound queue depth per connection (default: 200)
- WATCHSYNC_LOG_LEVEL: Log level name (default: "INFO")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from watchsync.session.session import DEFAULT_SESSION_ID_LENGTH, MIN_SESSION_ID_LENGTH

ENV_PREFIX = "WATCHSYNC_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_MAX_QUEUE_SIZE = 200


def _parse_int(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def _parse_origins(raw: str | None) -> list[str]:
    if raw is None or raw.strip() == "":
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class RelaySettings:
    """
    Configuration for the relay service.

    Attributes:
        host: Address uvicorn binds to
        port: Port uvicorn listens on
        cors_origins: Origins allowed by the CORS middleware
        session_id_length: Length of generated session handles
        max_queue_size: Outbound queue depth per connection
        log_level: Root log level name
    """
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    session_id_length: int = DEFAULT_SESSION_ID_LENGTH
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RelaySettings:
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of os.environ (no .env loading then)

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if env is None:
            load_dotenv()
            env = os.environ

        log_level = env.get(ENV_PREFIX + "LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if log_level not in LOG_LEVELS:
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL is not a log level: {log_level!r}")

        return cls(
            host=env.get(ENV_PREFIX + "HOST", "0.0.0.0").strip() or "0.0.0.0",
            port=_parse_int(env, "PORT", 3000, minimum=1),
            cors_origins=_parse_origins(env.get(ENV_PREFIX + "CORS_ORIGINS")),
            session_id_length=_parse_int(
                env, "SESSION_ID_LENGTH", DEFAULT_SESSION_ID_LENGTH,
                minimum=MIN_SESSION_ID_LENGTH,
            ),
            max_queue_size=_parse_int(env, "MAX_QUEUE_SIZE", DEFAULT_MAX_QUEUE_SIZE, minimum=1),
            log_level=log_level,
        )
