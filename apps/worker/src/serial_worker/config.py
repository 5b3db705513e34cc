from dataclasses import dataclass
from functools import lru_cache
import os


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class Settings:
    max_attempts: int
    faith_ms: int
    patience_ms: int
    http_timeout_seconds: float
    log_level: str


@lru_cache
def get_settings() -> Settings:
    return Settings(
        max_attempts=_to_int(os.getenv("SERIAL_WORKER_MAX_ATTEMPTS"), default=3, minimum=1),
        faith_ms=_to_int(os.getenv("SERIAL_WORKER_FAITH_MS"), default=3000, minimum=1),
        patience_ms=_to_int(os.getenv("SERIAL_WORKER_PATIENCE_MS"), default=400, minimum=0),
        http_timeout_seconds=_to_float(
            os.getenv("SERIAL_WORKER_HTTP_TIMEOUT_SECONDS"), default=5.0, minimum=0.1
        ),
        log_level=os.getenv("SERIAL_WORKER_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
