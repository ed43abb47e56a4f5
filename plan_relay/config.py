"""
Relay Configuration

Settings are read from environment variables, optionally loaded from a
.env file in the working directory.

Server:
- HOST: Bind address (default: "0.0.0.0")
- PORT / RAILWAY_PORT: Bind port (default: 3000)
- ALLOWED_ORIGINS: Comma-separated origin allow-list (empty = allow all)
- LOG_LEVEL: Root log level (default: "INFO")

Planning (see plan_relay.llm for provider credentials):
- RELAY_LLM_MODEL: Model identifier (default: "gpt-4o-mini")
- RELAY_LLM_TEMPERATURE: Sampling temperature (default: 0.7)
- RELAY_LLM_MAX_TOKENS: Max tokens to generate (optional)
- RELAY_LLM_TIMEOUT: Provider request timeout in seconds (default: 30.0)
- RELAY_LLM_MAX_RETRIES: Provider retries (default: 2)
- RELAY_PLAN_TIMEOUT: Overall per-plan timeout in seconds (optional, off by default)
- RELAY_OUTBOX_SIZE: Per-connection outbound queue depth (default: 100)
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class RelaySettings(BaseModel):
    """Runtime configuration for the relay server."""

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")
    allowed_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed to open a WebSocket (empty or '*' allows all)",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # === Planning ===
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier (e.g., 'gpt-4o-mini', 'azure/gpt-4o', 'ollama/llama3.2')",
    )
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: Optional[int] = Field(default=None, ge=1)
    llm_timeout: Optional[float] = Field(default=30.0, gt=0)
    llm_max_retries: int = Field(default=2, ge=0)
    plan_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Upper bound on a whole plan request; None leaves calls unbounded",
    )

    # === Transport ===
    outbox_size: int = Field(default=100, ge=1, description="Per-connection outbound queue depth")

    def origin_allowed(self, origin: str | None) -> bool:
        """Check a connection's declared origin against the allow-list."""
        if not self.allowed_origins or "*" in self.allowed_origins:
            return True
        return origin is not None and origin in self.allowed_origins


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


def load_settings(env_file: str | None = None) -> RelaySettings:
    """
    Build settings from the environment.

    Args:
        env_file: Optional path to a .env file (default: search from the working directory)

    Returns:
        RelaySettings populated from environment variables
    """
    load_dotenv(env_file)

    max_tokens_str = os.getenv("RELAY_LLM_MAX_TOKENS")

    settings = RelaySettings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT") or os.getenv("RAILWAY_PORT") or "3000"),
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS", "")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        llm_model=os.getenv("RELAY_LLM_MODEL", "gpt-4o-mini"),
        llm_temperature=float(os.getenv("RELAY_LLM_TEMPERATURE", "0.7")),
        llm_max_tokens=int(max_tokens_str) if max_tokens_str else None,
        llm_timeout=_optional_float("RELAY_LLM_TIMEOUT") or 30.0,
        llm_max_retries=int(os.getenv("RELAY_LLM_MAX_RETRIES", "2")),
        plan_timeout=_optional_float("RELAY_PLAN_TIMEOUT"),
        outbox_size=int(os.getenv("RELAY_OUTBOX_SIZE", "100")),
    )

    logger.debug(
        f"Settings loaded: port={settings.port}, model={settings.llm_model}, "
        f"origins={settings.allowed_origins or ['*']}"
    )
    return settings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
