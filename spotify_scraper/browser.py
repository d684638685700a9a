"""Browser management for Spotify artist page scraping.

Each acquisition launches its own Chromium instance and closes it when the
caller's `async with` block exits, whatever the reason: success, extraction
error or task cancellation. Nothing browser-related outlives a request.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from spotify_scraper.dataclasses import ScraperConfig
from spotify_scraper.exceptions import ContainerNotFoundError, PageLoadError
from spotify_scraper.page import PlaywrightPage


class BrowserManager:
    """Manages browser launch options, page loading, resource blocking and debug capture."""

    def __init__(self, config: ScraperConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(__name__)

    @property
    def action_timeout_s(self) -> float:
        return self.config.action_timeout_ms / 1000

    def get_launch_options(self) -> Dict[str, Any]:
        """Get Chromium launch options."""
        args = list(self.config.browser_args)
        args.append(f"--window-size={self.config.viewport_width},{self.config.viewport_height}")

        if not self.config.headless:
            self.logger.info("Running in non-headless mode for debugging")

        return {
            'headless': self.config.headless,
            'args': args,
        }

    def get_context_options(self) -> Dict[str, Any]:
        """Get browser context options: viewport, user agent and request headers."""
        return {
            'viewport': {'width': self.config.viewport_width, 'height': self.config.viewport_height},
            'user_agent': self.config.user_agent,
            'locale': 'en-US',
            'extra_http_headers': {
                'Accept-Language': self.config.accept_language,
            },
        }

    async def setup_resource_blocking(self, page: Any) -> Dict[str, Any]:
        """Abort requests for the configured resource types.

        Returns:
            Live counters of total and blocked requests for this page
        """
        stats: Dict[str, Any] = {
            'total_requests': 0,
            'blocked_requests': 0,
            'blocked_types': {}
        }
        if not self.config.resource_blocking_enabled:
            return stats

        blocked_types = set(self.config.blocked_resource_types)

        async def handle_route(route):
            resource_type = route.request.resource_type
            stats['total_requests'] += 1

            if resource_type in blocked_types:
                stats['blocked_requests'] += 1
                stats['blocked_types'][resource_type] = stats['blocked_types'].get(resource_type, 0) + 1
                await route.abort()
            else:
                await route.continue_()

        await page.route("**/*", handle_route)
        self.logger.debug(f"Set up resource blocking for: {', '.join(sorted(blocked_types))}")
        return stats

    async def _open_page(self, browser: Any, url: str) -> Any:
        try:
            context = await asyncio.wait_for(browser.new_context(**self.get_context_options()),
                                             timeout=self.action_timeout_s)
            return await asyncio.wait_for(context.new_page(), timeout=self.action_timeout_s)
        except asyncio.TimeoutError as e:
            raise PageLoadError(url, f"Timed out after {self.config.action_timeout_ms}ms opening a browser page") from e
        except PlaywrightError as e:
            raise PageLoadError(url, f"Failed to open a browser page: {e}") from e

    async def _navigate(self, page: Any, url: str) -> None:
        self.logger.info(f"Navigating to {url}")
        try:
            response = await page.goto(url, wait_until='domcontentloaded', timeout=self.config.page_timeout)
        except PlaywrightTimeoutError as e:
            raise PageLoadError(url, f"Timed out after {self.config.page_timeout}ms loading {url}") from e
        except PlaywrightError as e:
            raise PageLoadError(url, f"Failed to load {url}: {e}") from e

        if response is not None and response.status >= 400:
            raise PageLoadError(url, f"Request for {url} failed with status {response.status}")

        self.logger.info("Initial page load complete")

    @asynccontextmanager
    async def acquire_page(self, url: str) -> AsyncIterator[PlaywrightPage]:
        """Launch a browser, load url and yield the rendered page.

        The browser is closed when the block exits. If the block raises
        ContainerNotFoundError, debug artifacts are captured first.

        Raises:
            PageLoadError: Browser launch or navigation failed or timed out
        """
        async with async_playwright() as playwright:
            try:
                browser = await playwright.chromium.launch(**self.get_launch_options())
            except PlaywrightError as e:
                raise PageLoadError(url, f"Failed to launch browser: {e}") from e

            stats: Dict[str, Any] = {}
            try:
                page = await self._open_page(browser, url)
                stats = await self.setup_resource_blocking(page)
                await self._navigate(page, url)

                handle = PlaywrightPage(
                    page,
                    action_timeout_ms=self.config.action_timeout_ms,
                    scroll_step_px=self.config.scroll_step_px,
                    scroll_max_steps=self.config.scroll_max_steps,
                )
                try:
                    yield handle
                except ContainerNotFoundError:
                    await self.capture_debug_artifacts(page, url)
                    raise
            finally:
                await self.release(browser)
                if stats.get('total_requests'):
                    self.logger.debug(f"Blocked {stats['blocked_requests']}/{stats['total_requests']} requests: {stats['blocked_types']}")

    async def release(self, browser: Any) -> None:
        """Close the browser; safe to call on an already closed browser."""
        try:
            await asyncio.wait_for(browser.close(), timeout=self.action_timeout_s)
            self.logger.debug("Browser closed")
        except asyncio.TimeoutError:
            self.logger.warning(f"Browser did not close within {self.config.action_timeout_ms}ms")
        except PlaywrightError as e:
            self.logger.warning(f"Error closing browser: {e}")

    async def capture_debug_artifacts(self, page: Any, url: str) -> Optional[Path]:
        """Save a screenshot and the page HTML to debug_dir, if configured.

        Returns:
            Path of the screenshot, or None when capture is disabled or failed
        """
        if not self.config.debug_dir:
            return None

        debug_dir = Path(self.config.debug_dir)
        stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S')
        slug = url.rstrip('/').rsplit('/', 1)[-1] or 'page'
        screenshot_path = debug_dir / f"spotify-debug-{slug}-{stamp}.png"
        html_path = debug_dir / f"spotify-debug-{slug}-{stamp}.html"

        try:
            debug_dir.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(screenshot_path), full_page=True,
                                  timeout=self.config.action_timeout_ms)
            html = await asyncio.wait_for(page.content(), timeout=self.action_timeout_s)
            html_path.write_text(html, encoding='utf-8')
            self.logger.info(f"Created debug screenshot as {screenshot_path}")
            self.logger.debug(f"Page content snippet: {html[:500]}...")
            return screenshot_path
        except (asyncio.TimeoutError, PlaywrightError, OSError) as e:
            self.logger.warning(f"Debug capture failed: {e}")
            return None
