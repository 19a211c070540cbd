"""
Engine configuration, read from environment variables.

    GENERALS_ENV                    development | production
    GENERALS_GAME_CLOCK_SECONDS     per-player game clock (default 900)
    GENERALS_SETUP_CLOCK_SECONDS    time allowed for setup (default 300)
    GENERALS_TIMEOUT_POLICY         how clock expiry is settled
    GENERALS_STALE_MATCH_SECONDS    age after which finished matches are dropped
    ALLOWED_ORIGINS                 comma-separated CORS origins
    GENERALS_LOG_LEVEL              logging level name (default INFO)
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field

from .engine_core.clock import (
    DEFAULT_GAME_CLOCK_SECONDS,
    DEFAULT_SETUP_CLOCK_SECONDS,
    TimeoutPolicy,
)


@dataclass(frozen=True)
class EngineConfig:
    env: str = "development"
    game_clock_seconds: float = DEFAULT_GAME_CLOCK_SECONDS
    setup_clock_seconds: float = DEFAULT_SETUP_CLOCK_SECONDS
    timeout_policy: TimeoutPolicy = TimeoutPolicy.MORE_MATERIAL_WINS
    stale_match_seconds: int = 3600
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EngineConfig:
        """Build a config from the environment. Unset variables keep their defaults."""
        env = os.environ if environ is None else environ
        try:
            return cls(
                env=env.get("GENERALS_ENV", "development"),
                game_clock_seconds=float(
                    env.get("GENERALS_GAME_CLOCK_SECONDS", DEFAULT_GAME_CLOCK_SECONDS)
                ),
                setup_clock_seconds=float(
                    env.get("GENERALS_SETUP_CLOCK_SECONDS", DEFAULT_SETUP_CLOCK_SECONDS)
                ),
                timeout_policy=TimeoutPolicy(
                    env.get("GENERALS_TIMEOUT_POLICY", TimeoutPolicy.MORE_MATERIAL_WINS.value)
                ),
                stale_match_seconds=int(env.get("GENERALS_STALE_MATCH_SECONDS", 3600)),
                allowed_origins=[
                    o.strip() for o in env.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()
                ],
                log_level=env.get("GENERALS_LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as e:
            raise ValueError(f"Invalid engine configuration: {e}") from e


def configure_logging(config: EngineConfig | None = None) -> None:
    """Set up root logging at the configured level."""
    config = config or EngineConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
