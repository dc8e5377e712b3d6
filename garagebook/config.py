"""Environment-driven settings shared by the API, CLI and desktop entry points."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 10.0


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r; expected a number, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r; must be positive, using %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    remote_url: Optional[str] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    env_name: str = "prod"
    allowed_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        origins = env.get("GARAGEBOOK_ALLOWED_ORIGINS", "")
        return cls(
            data_dir=Path(env.get("GARAGEBOOK_DATA_DIR") or "data"),
            remote_url=(env.get("GARAGEBOOK_REMOTE_URL") or "").strip() or None,
            poll_interval=_float_env(env, "GARAGEBOOK_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            timeout=_float_env(env, "GARAGEBOOK_TIMEOUT", DEFAULT_TIMEOUT),
            env_name=(env.get("GARAGEBOOK_ENV") or "prod").lower(),
            allowed_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
            log_level=(env.get("GARAGEBOOK_LOG_LEVEL") or "INFO").upper(),
        )

    def override(self, **changes: object) -> "Settings":
        """Return a copy with every non-None keyword applied (command-line flags)."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)

    @property
    def is_dev(self) -> bool:
        return self.env_name in {"dev", "development"}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
