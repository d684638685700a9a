"""Page handles: the read/activate surface the extraction engine runs against.

The engine never creates or closes pages. It only queries nodes, reads their
text and attributes, activates expand buttons and waits. Two implementations
exist: PlaywrightPage wraps a live rendered page, SnapshotPage wraps saved
HTML so extraction can be replayed offline without a browser.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional, Protocol, Union, runtime_checkable

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from soupsieve import SelectorSyntaxError

from spotify_scraper.text_utils import normalize_text


_DIRECT_CLICK_JS = """
(selector) => {
    const element = document.querySelector(selector);
    if (!element) {
        return false;
    }
    element.click();
    return true;
}
"""

_SCROLL_JS = """
async ({ step, maxSteps, interval }) => {
    let total = 0;
    for (let i = 0; i < maxSteps; i++) {
        window.scrollBy(0, step);
        total += step;
        if (total >= document.body.scrollHeight) {
            break;
        }
        await new Promise((resolve) => setTimeout(resolve, interval));
    }
    return total;
}
"""


@runtime_checkable
class PageHandle(Protocol):
    """Queryable rendered document."""

    async def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        """Return matching nodes in document order, or an empty list."""
        ...

    async def read_text(self, node: Any) -> str:
        ...

    async def read_attribute(self, node: Any, name: str) -> Optional[str]:
        ...

    async def activate(self, selector: str, direct: bool = False) -> bool:
        """Click the first node matching selector.

        Returns:
            True if the activation was performed, False if nothing was clicked
        """
        ...

    async def wait(self, duration_ms: int) -> None:
        ...

    async def wait_for(self, selector: str, timeout_ms: int) -> bool:
        """Wait until selector matches, returning False on timeout."""
        ...

    async def scroll_to_end(self) -> None:
        ...


class PlaywrightPage:
    """PageHandle over a live Playwright page.

    Every call is bounded: Playwright timeouts where the API takes one,
    asyncio.wait_for everywhere else.
    """

    def __init__(self, page: Any, action_timeout_ms: int = 5000,
                 scroll_step_px: int = 100, scroll_max_steps: int = 200,
                 scroll_interval_ms: int = 100) -> None:
        self.page = page
        self.action_timeout_ms = action_timeout_ms
        self.scroll_step_px = scroll_step_px
        self.scroll_max_steps = scroll_max_steps
        self.scroll_interval_ms = scroll_interval_ms
        self.logger = logging.getLogger(__name__)

    @property
    def _timeout_s(self) -> float:
        return self.action_timeout_ms / 1000

    async def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        root = scope if scope is not None else self.page
        try:
            return await asyncio.wait_for(root.query_selector_all(selector), timeout=self._timeout_s)
        except asyncio.TimeoutError:
            self.logger.debug(f"Query timed out for selector: {selector}")
            return []
        except PlaywrightError as e:
            # Invalid selectors and detached scopes behave like "no match"
            self.logger.debug(f"Query failed for selector {selector}: {e}")
            return []

    async def read_text(self, node: Any) -> str:
        text = await asyncio.wait_for(node.inner_text(), timeout=self._timeout_s)
        return (text or "").strip()

    async def read_attribute(self, node: Any, name: str) -> Optional[str]:
        return await asyncio.wait_for(node.get_attribute(name), timeout=self._timeout_s)

    async def activate(self, selector: str, direct: bool = False) -> bool:
        if direct:
            try:
                clicked = await asyncio.wait_for(
                    self.page.evaluate(_DIRECT_CLICK_JS, selector),
                    timeout=self._timeout_s
                )
                if clicked:
                    self.logger.debug(f"Clicked via JavaScript: {selector}")
                return bool(clicked)
            except (asyncio.TimeoutError, PlaywrightError) as e:
                self.logger.warning(f"JavaScript click failed for {selector}: {e}")
                return False

        try:
            await self.page.click(selector, timeout=self.action_timeout_ms)
            return True
        except PlaywrightError as e:
            # PlaywrightTimeoutError is a subclass, covers hidden/covered buttons
            self.logger.warning(f"Failed to click {selector}: {e}")
            return False

    async def wait(self, duration_ms: int) -> None:
        await self.page.wait_for_timeout(duration_ms)

    async def wait_for(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            self.logger.debug(f"Selector {selector} did not appear within {timeout_ms}ms")
            return False
        except PlaywrightError as e:
            self.logger.debug(f"Waiting for {selector} failed: {e}")
            return False

    async def scroll_to_end(self) -> None:
        budget_s = self.scroll_max_steps * self.scroll_interval_ms / 1000 + self._timeout_s
        await asyncio.wait_for(
            self.page.evaluate(_SCROLL_JS, {
                'step': self.scroll_step_px,
                'maxSteps': self.scroll_max_steps,
                'interval': self.scroll_interval_ms,
            }),
            timeout=budget_s
        )


class SnapshotPage:
    """PageHandle over saved HTML, parsed with BeautifulSoup.

    Nothing can be revealed on a static document, so activate() never
    performs anything and all waits return immediately.
    """

    def __init__(self, html: str, parser: str = 'lxml') -> None:
        self.soup = BeautifulSoup(html, parser)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_file(cls, path: Union[str, Path], parser: str = 'lxml') -> 'SnapshotPage':
        with open(path, 'r', encoding='utf-8') as f:
            return cls(f.read(), parser)

    async def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        root = scope if scope is not None else self.soup
        try:
            return root.select(selector)
        except SelectorSyntaxError as e:
            self.logger.debug(f"Unsupported selector {selector}: {e}")
            return []

    async def read_text(self, node: Any) -> str:
        return normalize_text(node.get_text(' ', strip=True))

    async def read_attribute(self, node: Any, name: str) -> Optional[str]:
        value = node.get(name)
        if isinstance(value, list):
            # Multi-valued attributes such as class
            return ' '.join(value)
        return value

    async def activate(self, selector: str, direct: bool = False) -> bool:
        self.logger.debug(f"Snapshot pages cannot be expanded, ignoring {selector}")
        return False

    async def wait(self, duration_ms: int) -> None:
        return None

    async def wait_for(self, selector: str, timeout_ms: int) -> bool:
        return bool(await self.query_all(selector))

    async def scroll_to_end(self) -> None:
        return None
