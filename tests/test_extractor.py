"""Extractor tests with a mocked Playwright page."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from storetrust_agent import config
from storetrust_agent.errors import NavigationError
from storetrust_agent.extractor import extract, scan_page

HOME_URL = "https://example.com/"


def _raw_snapshot(**overrides):
    raw = {
        "url": HOME_URL,
        "viewport_height": 1080,
        "body_text": "Free shipping on all orders. 1,200 reviews.",
        "footer_text": "hello@example.com",
        "contact_texts": [],
        "mailto_hrefs": [],
        "links": [
            {"href": "https://example.com/pages/contact", "text": "Contact"},
            {"href": "https://example.com/pages/about", "text": "About"},
        ],
        "elements": [
            {"tag": "img", "src": "https://cdn.example.com/visa.svg", "alt": "Visa", "top": 40, "left": 10, "width": 50, "height": 30},
        ],
        "selector_hits": {"review_widget": 0, "live_chat": 0, "security_seal": 0, "press_logos": 0},
        "cta": {"found": False, "text": "", "icons": []},
    }
    raw.update(overrides)
    return raw


def _response(ok=True, status=200):
    response = MagicMock()
    response.ok = ok
    response.status = status
    return response


def _mock_page(evaluate_results, *, goto_side_effect=None, screenshot_side_effect=None):
    page = MagicMock()
    if goto_side_effect is None:
        page.goto = AsyncMock(return_value=_response())
    else:
        page.goto = AsyncMock(side_effect=goto_side_effect)
    page.wait_for_load_state = AsyncMock()
    page.evaluate = AsyncMock(side_effect=evaluate_results)
    if screenshot_side_effect is None:
        page.screenshot = AsyncMock(return_value=b"png-bytes")
    else:
        page.screenshot = AsyncMock(side_effect=screenshot_side_effect)
    page.set_viewport_size = AsyncMock()
    return page


@pytest.mark.asyncio
async def test_scan_page_without_product_link():
    page = _mock_page([_raw_snapshot()])

    signals = await scan_page(page, HOME_URL)

    assert signals.is_secure
    assert signals.pages.has_contact and signals.pages.has_about
    assert signals.emails == ["hello@example.com"]
    assert signals.has_reviews
    assert signals.trust_badges.total_count == 1
    assert signals.screenshots.desktop == b"png-bytes"
    assert signals.screenshots.mobile == b"png-bytes"
    assert signals.product_page is not None and not signals.product_page.found

    page.goto.assert_awaited_once()
    assert page.goto.await_args.kwargs["wait_until"] == "domcontentloaded"
    page.wait_for_load_state.assert_awaited_with("networkidle", timeout=config.SCAN_TIMEOUT_MS)
    page.set_viewport_size.assert_awaited_once_with(config.MOBILE_VIEWPORT)
    first_shot, second_shot = page.screenshot.await_args_list
    assert first_shot.kwargs["full_page"] is True
    assert second_shot.kwargs["full_page"] is False


@pytest.mark.asyncio
async def test_scan_page_with_product_page():
    product_url = "https://example.com/products/blue-shirt"
    home = _raw_snapshot(links=[{"href": product_url, "text": "Blue shirt"}])
    product = _raw_snapshot(
        url=product_url,
        body_text="Size chart. 30 day returns. Add to cart",
        elements=[
            {"tag": "img", "src": "https://cdn.example.com/1.jpg", "width": 500, "height": 500},
            {"tag": "img", "src": "https://cdn.example.com/2.jpg", "width": 500, "height": 500},
        ],
        cta={"found": True, "text": "Add to cart  Secure checkout", "icons": []},
    )
    page = _mock_page([home, product])

    signals = await scan_page(page, HOME_URL)

    p = signals.product_page
    assert p.found
    assert p.url == product_url
    assert p.trust_badges_near_action
    assert p.return_policy_mentioned
    assert p.size_or_spec_info_present
    assert p.multiple_distinct_images
    assert p.in_stock_signal
    assert p.screenshots.desktop == b"png-bytes"
    assert p.screenshots.mobile == b"png-bytes"
    assert page.goto.await_count == 2
    assert page.goto.await_args_list[1].args[0] == product_url
    page.set_viewport_size.assert_any_await(config.DESKTOP_VIEWPORT)


@pytest.mark.asyncio
async def test_heuristic_failure_degrades_to_defaults():
    page = _mock_page(RuntimeError("Execution context was destroyed"))

    signals = await scan_page(page, HOME_URL)

    assert signals.url == HOME_URL
    assert signals.is_secure
    assert not any(signals.pages.model_dump().values())
    assert signals.emails == []
    assert signals.trust_badges.total_count == 0
    assert signals.screenshots.desktop == b"png-bytes"
    assert not signals.product_page.found


@pytest.mark.asyncio
async def test_malformed_snapshot_degrades_to_defaults():
    page = _mock_page([{"elements": "not-a-list"}, []])

    signals = await scan_page(page, HOME_URL)

    assert signals.trust_badges.total_count == 0
    assert not signals.has_reviews


@pytest.mark.asyncio
async def test_screenshot_failure_stores_none():
    page = _mock_page([_raw_snapshot()], screenshot_side_effect=[PlaywrightError("tab crashed"), b"mobile"])

    signals = await scan_page(page, HOME_URL)

    assert signals.screenshots.desktop is None
    assert signals.screenshots.mobile == b"mobile"
    assert signals.pages.has_contact


@pytest.mark.asyncio
async def test_navigation_failure_raises():
    page = _mock_page([], goto_side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

    with pytest.raises(NavigationError) as exc:
        await scan_page(page, "https://does-not-exist.example")

    assert "ERR_NAME_NOT_RESOLVED" in exc.value.reason
    page.screenshot.assert_not_awaited()


@pytest.mark.asyncio
async def test_error_status_with_empty_body_raises():
    page = _mock_page([0], goto_side_effect=[_response(ok=False, status=503)])

    with pytest.raises(NavigationError):
        await scan_page(page, HOME_URL)


@pytest.mark.asyncio
async def test_error_status_with_rendered_body_continues():
    page = _mock_page([120, _raw_snapshot()], goto_side_effect=[_response(ok=False, status=404)])

    signals = await scan_page(page, HOME_URL)

    assert signals.pages.has_contact


@pytest.mark.asyncio
async def test_network_idle_timeout_is_tolerated():
    page = _mock_page([_raw_snapshot()])
    page.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError("networkidle timeout"))

    signals = await scan_page(page, HOME_URL)

    assert signals.trust_badges.total_count == 1


@pytest.mark.asyncio
async def test_product_navigation_failure_marks_not_found():
    home = _raw_snapshot(links=[{"href": "https://example.com/products/x", "text": "X"}])
    page = _mock_page([home], goto_side_effect=[_response(), PlaywrightError("timeout")])

    signals = await scan_page(page, HOME_URL)

    assert signals.pages.has_contact is False
    assert signals.trust_badges.total_count == 1
    assert signals.product_page.found is False


@pytest.mark.asyncio
async def test_error_status_with_destroyed_context_raises_navigation_error():
    page = _mock_page(
        PlaywrightError("Execution context was destroyed"),
        goto_side_effect=[_response(ok=False, status=500)],
    )

    with pytest.raises(NavigationError) as exc:
        await scan_page(page, HOME_URL)

    assert "Execution context was destroyed" in exc.value.reason
    page.screenshot.assert_not_awaited()


@pytest.mark.asyncio
async def test_crashed_page_while_waiting_for_idle_raises_navigation_error():
    page = _mock_page([_raw_snapshot()])
    page.wait_for_load_state = AsyncMock(side_effect=PlaywrightError("Target page, context or browser has been closed"))

    with pytest.raises(NavigationError):
        await scan_page(page, HOME_URL)


@pytest.mark.asyncio
async def test_product_page_still_found_when_homepage_heuristics_fail():
    product_url = "https://example.com/products/blue-shirt"
    page = _mock_page(
        [
            {"elements": "not-a-list"},
            [{"href": "https://example.com/collections/all", "text": "Shop"}, {"href": product_url, "text": "Blue shirt"}],
            _raw_snapshot(url=product_url, body_text="Size chart. Add to cart"),
        ]
    )

    signals = await scan_page(page, HOME_URL)

    assert signals.trust_badges.total_count == 0
    assert signals.product_page.found
    assert signals.product_page.url == product_url
    assert signals.product_page.size_or_spec_info_present
    assert page.goto.await_args_list[1].args[0] == product_url


def _mock_playwright(page):
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=pw)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, browser, context


@pytest.mark.asyncio
async def test_extract_closes_browser_on_success():
    page = _mock_page([_raw_snapshot()])
    manager, browser, context = _mock_playwright(page)

    with patch("storetrust_agent.extractor.async_playwright", return_value=manager):
        signals = await extract(HOME_URL)

    assert signals.trust_badges.total_count == 1
    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    assert browser.new_context.await_args.kwargs["viewport"] == config.DESKTOP_VIEWPORT


@pytest.mark.asyncio
async def test_extract_closes_browser_on_navigation_failure():
    page = _mock_page([], goto_side_effect=PlaywrightError("connection refused"))
    manager, browser, context = _mock_playwright(page)

    with patch("storetrust_agent.extractor.async_playwright", return_value=manager):
        with pytest.raises(NavigationError):
            await extract(HOME_URL)

    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
