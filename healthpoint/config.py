from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    health_prefix: str = "/health"

    # Extra checks loaded from YAML (empty = demo checks only)
    checks_file: str = ""

    # Demo probes
    demo_fetch_url: str = "https://pokeapi.co/api/v2/pokemon/meowth"
    demo_heavy_delay_seconds: float = 3.0
    probe_timeout_ms: int = 10_000

    # Logging
    log_level: str = "INFO"


settings = Settings()
