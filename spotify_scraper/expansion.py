"""Bounded expansion of truncated track lists.

Artist pages sometimes render only five popular tracks behind a "See more"
button. The controller clicks that button until the target row count is
visible or the attempt budget is spent. Falling short is never an error:
extraction continues with whatever rows are on the page.
"""

import itertools
import logging
from typing import Iterator, Optional

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_fixed

from spotify_scraper.page import PageHandle
from spotify_scraper.resolver import DEFAULT_CATALOG, SelectorCatalog, SelectorResolver


class ContentExpansionController:
    """Reveals hidden track rows through the catalog's expand buttons."""

    def __init__(self, catalog: SelectorCatalog = DEFAULT_CATALOG,
                 resolver: Optional[SelectorResolver] = None,
                 settle_ms: int = 3000, retry_wait_ms: int = 2000,
                 final_wait_ms: int = 2000) -> None:
        self.catalog = catalog
        self.resolver = resolver or SelectorResolver()
        self.settle_ms = settle_ms
        self.retry_wait_ms = retry_wait_ms
        self.final_wait_ms = final_wait_ms
        self.logger = logging.getLogger(__name__)

    async def count_rows(self, page: PageHandle) -> int:
        """Count visible track rows using the first row selector that matches."""
        return await self.resolver.count(page, self.catalog.track_rows)

    async def ensure_expanded(self, page: PageHandle, target_count: int = 10,
                              max_attempts: int = 3) -> int:
        """Expand the track list until target_count rows are visible.

        Args:
            page: Rendered artist page
            target_count: Row count that makes expansion unnecessary
            max_attempts: Maximum number of rounds over the expand buttons

        Returns:
            Row count after expansion, possibly still below target_count
        """
        count = await self.count_rows(page)
        self.logger.info(f"Initial track count: {count}")

        if count >= target_count:
            self.logger.info(f"Already have {count} tracks, no need to click 'See more'")
            return count

        self.logger.info(f"Track count is less than {target_count}, attempting to load more tracks")

        # Rounds stop early once the target is reached; between unsuccessful
        # rounds the fixed wait goes through the page so it stays bounded
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            retry=retry_if_result(lambda rows: rows < target_count),
            wait=wait_fixed(self.retry_wait_ms / 1000),
            sleep=lambda seconds: page.wait(int(seconds * 1000)),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        count = await retrying(self._expand_round, page, target_count, itertools.count(1))

        if count < target_count:
            self.logger.warning(f"Could not reach {target_count} tracks after {max_attempts} attempts, continuing with {count}")

        await page.wait(self.final_wait_ms)
        return count

    async def _expand_round(self, page: PageHandle, target_count: int, attempts: Iterator[int]) -> int:
        """Try every expand button once, stopping as soon as the target is reached."""
        attempt = next(attempts)
        self.logger.info(f"Attempt {attempt} to click 'See more' button")
        count = None

        for selector in self.catalog.expand_button:
            try:
                if not await page.query_all(selector):
                    continue

                self.logger.info(f"Found button with selector: {selector}")

                # Regular click first, then a DOM click for handlers that
                # ignore synthetic pointer events
                await page.activate(selector)
                await page.activate(selector, direct=True)

                await page.wait(self.settle_ms)
                count = await self.count_rows(page)
                self.logger.info(f"After attempt {attempt}, track count: {count}")

                if count >= target_count:
                    self.logger.info(f"Successfully loaded {count} tracks")
                    break

            except Exception as e:
                self.logger.error(f"Error with expand selector {selector}: {e}")

        if count is None:
            self.logger.debug("No expand button found on this attempt")
            count = await self.count_rows(page)

        return count
