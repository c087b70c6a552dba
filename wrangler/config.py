"""Runtime settings with environment overrides (``WRANGLER_*``)."""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "WRANGLER_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    max_history: int = 50
    trim_keep: int = 10
    preview_rows: int = 100
    page_size: int = 500
    lock_timeout: Optional[float] = None
    log_level: str = "INFO"

    def __post_init__(self):
        for name in ("max_history", "trim_keep", "preview_rows", "page_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer")
        if self.lock_timeout is not None and self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        def _get(key: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + key)
            return value.strip() if value and value.strip() else None

        kwargs = {}
        for key, name in (("MAX_HISTORY", "max_history"), ("TRIM_KEEP", "trim_keep"),
                          ("PREVIEW_ROWS", "preview_rows"), ("PAGE_SIZE", "page_size")):
            raw = _get(key)
            if raw is not None:
                try:
                    kwargs[name] = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {raw!r}") from None
        raw = _get("LOCK_TIMEOUT")
        if raw is not None:
            try:
                kwargs["lock_timeout"] = float(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}LOCK_TIMEOUT must be a number, got {raw!r}") from None
        raw = _get("LOG_LEVEL")
        if raw is not None:
            kwargs["log_level"] = raw.upper()
        return cls(**kwargs)
