from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from urllib.parse import urlparse, urlunparse

from . import config
from .ai_assessment import assess_design
from .extractor import extract
from .models import ScanReport
from .scoring import score, score_product_page

logger = logging.getLogger(__name__)


def normalize_url(raw: str) -> str:
    value = (raw or "").strip()
    if not value:
        raise ValueError("Please provide a URL.")

    if not re.match(r"^[a-zA-Z][a-zA-Z\d+.-]*://", value):
        value = "https://" + value

    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Please use an http(s) website URL.")
    if not parsed.hostname or "." not in parsed.hostname:
        raise ValueError("Please enter a valid website domain.")

    return urlunparse(parsed._replace(fragment=""))


async def run_scan(
    url: str,
    *,
    include_ai: bool = True,
    timeout_ms: int = config.SCAN_TIMEOUT_MS,
) -> ScanReport:
    """Extract, optionally enrich with AI, and score one storefront.

    Raises ValueError for an unusable URL and NavigationError when the page
    cannot be loaded; everything else degrades into the report.
    """
    t0 = time.perf_counter()
    normalized_url = normalize_url(url)
    hostname = urlparse(normalized_url).hostname or ""
    scan_id = uuid.uuid4().hex[:12]
    log_ctx = {"scan_id": scan_id, "url": normalized_url}
    timings: dict[str, int] = {}
    warnings: list[str] = []

    logger.info("Starting scan for %s", normalized_url, extra=log_ctx)

    start = time.perf_counter()
    signals = await extract(normalized_url, timeout_ms=timeout_ms)
    timings["extract"] = int((time.perf_counter() - start) * 1000)

    if signals.screenshots.desktop is None:
        warnings.append("Desktop screenshot unavailable")
    if signals.screenshots.mobile is None:
        warnings.append("Mobile screenshot unavailable")
    if signals.product_page is None or not signals.product_page.found:
        warnings.append("Product page: not found or could not be analyzed")

    if include_ai:
        start = time.perf_counter()
        ai = await assess_design(signals.screenshots)
        timings["ai"] = int((time.perf_counter() - start) * 1000)
        if ai is None:
            warnings.append("AI design assessment unavailable")
        signals = signals.model_copy(update={"ai_assessment": ai})

    result = score(signals)
    product_result = score_product_page(signals.product_page)
    timings["total"] = int((time.perf_counter() - t0) * 1000)

    logger.info(
        "Scan finished for %s: score=%d grade=%s product_score=%d",
        normalized_url,
        result.score,
        result.grade,
        product_result.score,
        extra={**log_ctx, "timings_ms": timings, "warnings": warnings},
    )

    return ScanReport(
        url=normalized_url,
        hostname=hostname,
        signals=signals,
        result=result,
        product_result=product_result,
        scan_id=scan_id,
        scanned_at=datetime.now(timezone.utc).isoformat(),
        timings_ms=timings,
        warnings=warnings,
    )
