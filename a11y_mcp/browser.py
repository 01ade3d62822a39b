"""Bridge to Playwright (Chromium) + axe-core.

The API is intentionally small: ``run_axe`` loads one URL in a fresh
headless browser, runs axe-core against the live DOM and returns the raw
results as :class:`~a11y_mcp.schema.AxeResults`. Every call owns its own
browser; nothing is pooled or reused.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from pydantic import ValidationError

from .config import Settings
from .schema import AxeResults
from .utils import is_valid_url

log = logging.getLogger(__name__)

AXE_RUN_SCRIPT = """
async (options) => {
  if (!window.axe || !window.axe.run) {
    throw new Error('axe-core failed to load');
  }
  return await window.axe.run(document, options);
}
"""


class AuditError(RuntimeError):
    """Base class for failures while loading or auditing a page."""


class InvalidURLError(AuditError):
    pass


class BrowserLaunchError(AuditError):
    pass


class NavigationError(AuditError):
    pass


class NavigationTimeoutError(NavigationError):
    pass


class AxeEvaluationError(AuditError):
    pass


def axe_options(tags: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Options for ``axe.run``; non-empty ``tags`` restrict the rules by tag."""
    if tags:
        return {"runOnly": {"type": "tag", "values": list(tags)}}
    return {}


class NetworkIdleWatcher:
    """Wait until a page has at most ``max_inflight`` requests for ``quiet_ms``.

    Listeners are attached on construction, so create the watcher before
    navigating. Any request starting or finishing restarts the quiet window.
    """

    def __init__(self, page, *, max_inflight: int = 2, quiet_ms: int = 500):
        self._page = page
        self.max_inflight = max_inflight
        self.quiet_s = quiet_ms / 1000
        self._inflight: set = set()
        self._changed = asyncio.Event()
        self._handlers = {
            "request": self._on_start,
            "requestfinished": self._on_done,
            "requestfailed": self._on_done,
        }
        for event, handler in self._handlers.items():
            page.on(event, handler)

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def _on_start(self, request) -> None:
        self._inflight.add(request)
        self._changed.set()

    def _on_done(self, request) -> None:
        self._inflight.discard(request)
        self._changed.set()

    async def wait(self) -> None:
        while True:
            self._changed.clear()
            if self.inflight > self.max_inflight:
                await self._changed.wait()
                continue
            try:
                await asyncio.wait_for(self._changed.wait(), timeout=self.quiet_s)
            except asyncio.TimeoutError:
                return

    def close(self) -> None:
        for event, handler in self._handlers.items():
            self._page.remove_listener(event, handler)


@asynccontextmanager
async def browser_page(settings: Settings) -> AsyncIterator[Any]:
    """Launch an isolated browser and yield a page; the browser is always closed."""
    async with async_playwright() as pw:
        try:
            browser = await pw.chromium.launch(headless=settings.headless, args=list(settings.browser_args))
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Failed to launch browser: {e.message}") from e
        try:
            context = await browser.new_context(
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
                # axe is injected as a script; page CSP must not block it
                bypass_csp=True,
            )
            page = await context.new_page()
            yield page
        finally:
            await browser.close()
            log.debug("Browser closed")


async def navigate(page, url: str, settings: Settings) -> None:
    """Load ``url`` and wait for the network to settle within the navigation timeout."""
    timeout_ms = settings.navigation_timeout_ms
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    watcher = NetworkIdleWatcher(
        page,
        max_inflight=settings.network_idle_connections,
        quiet_ms=settings.network_idle_ms,
    )
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        await asyncio.wait_for(watcher.wait(), timeout=max(deadline - loop.time(), 0))
    except (PlaywrightTimeoutError, asyncio.TimeoutError) as e:
        raise NavigationTimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded") from e
    except PlaywrightError as e:
        raise NavigationError(e.message) from e
    finally:
        watcher.close()


async def inject_axe(page, source: str) -> None:
    """Add axe-core to the page from an http(s) URL or a local file path."""
    if source.lower().startswith(("http://", "https://")):
        await page.add_script_tag(url=source)
    else:
        await page.add_script_tag(path=source)


async def evaluate_axe(page, settings: Settings, tags: Optional[Sequence[str]] = None) -> AxeResults:
    try:
        await inject_axe(page, settings.axe_source)
        raw = await page.evaluate(AXE_RUN_SCRIPT, axe_options(tags))
    except PlaywrightError as e:
        raise AxeEvaluationError(f"axe-core evaluation failed: {e.message}") from e
    if not isinstance(raw, dict):
        raise AxeEvaluationError(f"Unexpected axe-core result of type {type(raw).__name__}")
    try:
        return AxeResults.model_validate(raw)
    except ValidationError as e:
        raise AxeEvaluationError(f"Malformed axe-core result: {e.error_count()} validation error(s)") from e


async def run_axe(url: str, *, tags: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> AxeResults:
    """Audit ``url`` with axe-core and return the raw results.

    Raises an :class:`AuditError` subclass on any failure. The URL is checked
    before a browser is started.
    """
    settings = settings or Settings()
    if not is_valid_url(url):
        raise InvalidURLError(f"Invalid URL: {url}")
    log.info("Auditing %s (tags=%s)", url, list(tags) if tags else "all")
    async with browser_page(settings) as page:
        await navigate(page, url, settings)
        results = await evaluate_axe(page, settings, tags)
    log.info("Audit of %s finished: %d violation(s)", url, len(results.violations))
    return results


__all__ = [
    "AuditError",
    "InvalidURLError",
    "BrowserLaunchError",
    "NavigationError",
    "NavigationTimeoutError",
    "AxeEvaluationError",
    "NetworkIdleWatcher",
    "axe_options",
    "browser_page",
    "navigate",
    "evaluate_axe",
    "run_axe",
]
