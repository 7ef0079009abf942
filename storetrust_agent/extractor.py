from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from . import config
from .dom_snapshot import DomSnapshot, collect_links, collect_snapshot
from .errors import HeuristicEvaluationError, NavigationError, ProductPageError, ScreenshotCaptureError
from .heuristics import build_page_signals, build_product_signals, find_product_link, is_secure_url
from .models import PageSignals, ProductSignals, Screenshots

logger = logging.getLogger(__name__)


async def extract(target_url: str, *, timeout_ms: int = config.SCAN_TIMEOUT_MS) -> PageSignals:
    """Render ``target_url`` and derive its trust signals.

    Raises NavigationError when the page cannot be loaded. Every other
    failure degrades to default values. The browser is closed on every path.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=True,
            args=[
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        try:
            context = await browser.new_context(
                viewport=config.DESKTOP_VIEWPORT,
                user_agent=config.USER_AGENT,
                java_script_enabled=True,
                ignore_https_errors=True,
            )
            try:
                page = await context.new_page()
                return await scan_page(page, target_url, timeout_ms=timeout_ms)
            finally:
                await context.close()
        finally:
            await browser.close()


async def scan_page(page: Page, target_url: str, *, timeout_ms: int = config.SCAN_TIMEOUT_MS) -> PageSignals:
    await _navigate(page, target_url, timeout_ms)

    signals, snapshot = await _evaluate_homepage(page, target_url)
    if snapshot is None:
        snapshot = await _links_only(page, target_url)
    screenshots = await _capture_both(page)

    product = ProductSignals(found=False)
    if snapshot is not None:
        try:
            product = await _product_pass(page, snapshot, target_url, timeout_ms)
        except ProductPageError as e:
            logger.warning("Product page pass failed for %s: %s", target_url, e)
            product = ProductSignals(found=False)

    return signals.model_copy(update={"screenshots": screenshots, "product_page": product})


async def _navigate(page: Page, url: str, timeout_ms: int) -> None:
    try:
        response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as e:
        raise NavigationError(url, str(e)) from e

    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        # Long-polling widgets keep the network busy; the DOM is usable anyway.
        logger.debug("Network did not go idle for %s; continuing", url)
    except PlaywrightError as e:
        raise NavigationError(url, str(e)) from e

    if response is not None and not response.ok:
        try:
            text_len = await page.evaluate("() => document.body ? document.body.innerText.trim().length : 0")
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e
        if not text_len:
            raise NavigationError(url, f"HTTP {response.status} with an empty page")
        logger.info("HTTP %s for %s but the page rendered content; continuing", response.status, url)


async def _run_heuristics(page: Page, url: str) -> tuple[PageSignals, DomSnapshot]:
    try:
        snapshot = await collect_snapshot(page)
        return build_page_signals(snapshot, url), snapshot
    except Exception as e:
        raise HeuristicEvaluationError(f"{type(e).__name__}: {e}") from e


async def _evaluate_homepage(page: Page, url: str) -> tuple[PageSignals, DomSnapshot | None]:
    try:
        return await _run_heuristics(page, url)
    except HeuristicEvaluationError as e:
        logger.warning("Heuristic evaluation failed for %s, using defaults: %s", url, e)
        return PageSignals(url=url, is_secure=is_secure_url(url)), None


async def _links_only(page: Page, url: str) -> DomSnapshot | None:
    try:
        return await collect_links(page)
    except Exception as e:
        logger.warning("Link collection failed for %s, skipping product page: %s", url, e)
        return None


async def _capture(page: Page, *, full_page: bool) -> bytes:
    try:
        return await page.screenshot(type="png", full_page=full_page)
    except PlaywrightError as e:
        raise ScreenshotCaptureError(str(e)) from e


async def _safe_capture(page: Page, *, full_page: bool, label: str) -> bytes | None:
    try:
        return await _capture(page, full_page=full_page)
    except ScreenshotCaptureError as e:
        logger.warning("%s screenshot failed: %s", label.capitalize(), e)
        return None


async def _capture_both(page: Page) -> Screenshots:
    desktop = await _safe_capture(page, full_page=True, label="desktop")
    try:
        await page.set_viewport_size(config.MOBILE_VIEWPORT)
    except PlaywrightError as e:
        logger.warning("Could not switch to mobile viewport: %s", e)
        return Screenshots(desktop=desktop, mobile=None)
    mobile = await _safe_capture(page, full_page=False, label="mobile")
    return Screenshots(desktop=desktop, mobile=mobile)


async def _product_pass(page: Page, homepage: DomSnapshot, base_url: str, timeout_ms: int) -> ProductSignals:
    product_url = find_product_link(homepage, base_url)
    if not product_url:
        logger.info("No product link found on %s", base_url)
        return ProductSignals(found=False)

    try:
        await page.set_viewport_size(config.DESKTOP_VIEWPORT)
        await _navigate(page, product_url, timeout_ms)
        snapshot = await collect_snapshot(page)
        product = build_product_signals(snapshot, product_url)
    except Exception as e:
        raise ProductPageError(f"{product_url}: {type(e).__name__}: {e}") from e

    screenshots = await _capture_both(page)
    return product.model_copy(update={"screenshots": screenshots})
