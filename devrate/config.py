"""DevRate configuration — loaded from .env via pydantic-settings."""

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings


class DevRateSettings(BaseSettings):
    """All DevRate configuration. Reads from .env file and environment variables."""

    # --- Execution relay (server side) ---
    host: str = Field(default="0.0.0.0", description="Relay bind address")
    port: int = Field(
        default=5173,
        validation_alias=AliasChoices("PORT", "DEVRATE_PORT"),
        description="Relay listening port",
    )

    # --- JDoodle upstream (server side ONLY, never sent to the client) ---
    jdoodle_client_id: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("JDOODLE_CLIENT_ID", "DEVRATE_JDOODLE_CLIENT_ID"),
    )
    jdoodle_client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("JDOODLE_CLIENT_SECRET", "DEVRATE_JDOODLE_CLIENT_SECRET"),
    )
    jdoodle_url: str = Field(
        default="https://api.jdoodle.com/v1/execute",
        description="JDoodle execute endpoint",
    )
    jdoodle_version_index: str = Field(
        default="0",
        description="Runtime version selector sent with every request (0 = provider default)",
    )
    upstream_timeout: float = Field(default=30.0, description="Seconds to wait for JDoodle")

    # --- Client orchestrator ---
    relay_url: str = Field(
        default="http://localhost:5173",
        description="Base URL of the execution relay the client talks to",
    )
    client_timeout: float = Field(default=60.0, description="Seconds to wait for the relay")
    poll_interval: float = Field(default=0.2, description="Library readiness poll interval (s)")
    settle_delay: float = Field(
        default=0.5,
        description="Heuristic delay after editor construction before run is enabled (s)",
    )
    load_timeout: float = Field(default=30.0, description="Max wait for widget libraries (s)")

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="console",
        description="Log format: 'console' for dev, 'json' for production",
    )

    # --- Tracing ---
    trace_dir: Path = Field(
        default=Path.home() / ".devrate" / "traces",
        description="Where readiness/run traces are persisted",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DEVRATE_",
        "extra": "ignore",
        "populate_by_name": True,
    }


# Singleton — import this everywhere
settings = DevRateSettings()
