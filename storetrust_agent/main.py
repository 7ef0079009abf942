from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load .env before config reads the environment
_HERE = Path(__file__).resolve()
load_dotenv(_HERE.parents[1] / ".env", override=False)

from . import config  # noqa: E402
from .errors import NavigationError  # noqa: E402
from .logging_config import setup_logging  # noqa: E402
from .models import ScanReport, ScanRequest  # noqa: E402
from .scanner import run_scan  # noqa: E402

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="StoreTrust Scanner", version="0.1.0")

_playwright_semaphore = asyncio.Semaphore(config.PLAYWRIGHT_CONCURRENCY)


@asynccontextmanager
async def _playwright_slot():
    try:
        await asyncio.wait_for(_playwright_semaphore.acquire(), timeout=config.PLAYWRIGHT_ACQUIRE_TIMEOUT_S)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=503,
            detail="Scanner busy (too many concurrent browser jobs). Please retry.",
            headers={"Retry-After": "2"},
        )
    try:
        yield
    finally:
        _playwright_semaphore.release()


# For local dev, this defaults to allowing http://localhost:3000.
# In production, set STORETRUST_CORS_ORIGINS to your deployed frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/scan", response_model=ScanReport)
async def scan_endpoint(req: ScanRequest):
    async with _playwright_slot():
        try:
            return await run_scan(req.url, include_ai=req.include_ai, timeout_ms=req.timeout_ms)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except NavigationError as e:
            logger.warning("Scan failed: %s", e)
            raise HTTPException(status_code=502, detail=f"Could not load the store: {e.reason}")
