from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
AI_TIMEOUT_S = _float_env("AI_TIMEOUT_S", 45.0)

SCAN_TIMEOUT_MS = _int_env("SCAN_TIMEOUT_MS", 30000)

DESKTOP_VIEWPORT = {
    "width": _int_env("SCAN_DESKTOP_WIDTH", 1920),
    "height": _int_env("SCAN_DESKTOP_HEIGHT", 1080),
}
MOBILE_VIEWPORT = {
    "width": _int_env("SCAN_MOBILE_WIDTH", 390),
    "height": _int_env("SCAN_MOBILE_HEIGHT", 844),
}

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 StoreTrustScanner/1.0"
)

PLAYWRIGHT_CONCURRENCY = max(1, _int_env("PLAYWRIGHT_CONCURRENCY", 1))
PLAYWRIGHT_ACQUIRE_TIMEOUT_S = _float_env("PLAYWRIGHT_ACQUIRE_TIMEOUT_S", 0.25)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def cors_allow_origins() -> list[str]:
    raw = os.getenv("STORETRUST_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]
