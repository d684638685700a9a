"""Tests for page handle implementations."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from spotify_scraper.page import PageHandle, PlaywrightPage, SnapshotPage


class TestSnapshotPage:
    """Test suite for SnapshotPage."""

    @pytest.fixture
    def page(self, sample_artist_html):
        return SnapshotPage(sample_artist_html)

    def test_implements_page_handle(self, page):
        assert isinstance(page, PageHandle)

    @pytest.mark.asyncio
    async def test_scoped_query(self, page):
        """Test queries under a node only return its descendants."""
        rows = await page.query_all('[data-testid="tracklist-row"]')
        spans = await page.query_all('.encore-text-body-small', rows[1])

        assert len(rows) == 3
        assert [await page.read_text(span) for span in spans] == ["987", "2:05"]

    @pytest.mark.asyncio
    async def test_read_text_collapses_whitespace(self):
        page = SnapshotPage("<div><p>  Song\n\n   Title </p></div>")
        node = (await page.query_all('p'))[0]

        assert await page.read_text(node) == "Song Title"

    @pytest.mark.asyncio
    async def test_read_attribute(self, page):
        link = (await page.query_all('a[href^="/track/"]'))[0]
        title = (await page.query_all('h1'))[0]

        assert await page.read_attribute(link, 'href') == "/track/4uLU6hMCjMI75M1A2tKUQC"
        assert await page.read_attribute(title, 'missing') is None

    @pytest.mark.asyncio
    async def test_multi_valued_attribute_joined(self):
        page = SnapshotPage('<span class="encore-text body-small">x</span>')
        node = (await page.query_all('span'))[0]

        assert await page.read_attribute(node, 'class') == "encore-text body-small"

    @pytest.mark.asyncio
    async def test_invalid_selector_is_no_match(self, page):
        assert await page.query_all('div[') == []

    @pytest.mark.asyncio
    async def test_static_page_cannot_be_expanded(self, page):
        assert await page.activate('button') is False
        assert await page.wait_for('h1', 1000) is True
        assert await page.wait_for('.missing', 1000) is False

    @pytest.mark.asyncio
    async def test_from_file(self, sample_artist_file):
        page = SnapshotPage.from_file(sample_artist_file)

        assert len(await page.query_all('[data-testid="tracklist-row"]')) == 3


class TestPlaywrightPage:
    """Test suite for PlaywrightPage over a mocked Playwright page."""

    @pytest.fixture
    def raw_page(self):
        return AsyncMock()

    @pytest.fixture
    def page(self, raw_page):
        return PlaywrightPage(raw_page, action_timeout_ms=1000)

    @pytest.mark.asyncio
    async def test_query_all_scoped(self, page, raw_page):
        scope = AsyncMock()
        scope.query_selector_all.return_value = ["row"]

        assert await page.query_all('span', scope) == ["row"]
        scope.query_selector_all.assert_awaited_once_with('span')
        raw_page.query_selector_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_error_is_no_match(self, page, raw_page):
        raw_page.query_selector_all.side_effect = PlaywrightError("Unexpected token")

        assert await page.query_all('div[') == []

    @pytest.mark.asyncio
    async def test_query_is_bounded(self, raw_page):
        """Test a query that never settles returns no match instead of hanging."""
        async def never(selector):
            await asyncio.sleep(10)
        raw_page.query_selector_all = never
        page = PlaywrightPage(raw_page, action_timeout_ms=10)

        assert await page.query_all('div') == []

    @pytest.mark.asyncio
    async def test_read_text_strips(self, page):
        node = AsyncMock()
        node.inner_text.return_value = "  Song Title \n"

        assert await page.read_text(node) == "Song Title"

    @pytest.mark.asyncio
    async def test_activate_click(self, page, raw_page):
        assert await page.activate('button') is True
        raw_page.click.assert_awaited_once_with('button', timeout=1000)

    @pytest.mark.asyncio
    async def test_activate_click_failure(self, page, raw_page):
        raw_page.click.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")

        assert await page.activate('button') is False

    @pytest.mark.asyncio
    async def test_activate_direct(self, page, raw_page):
        raw_page.evaluate.return_value = True

        assert await page.activate('button', direct=True) is True
        raw_page.click.assert_not_called()
        assert raw_page.evaluate.await_args.args[1] == 'button'

    @pytest.mark.asyncio
    async def test_wait_for_timeout(self, page, raw_page):
        raw_page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 500ms exceeded")

        assert await page.wait_for('h1', 500) is False

    @pytest.mark.asyncio
    async def test_wait_uses_page_timer(self, page, raw_page):
        await page.wait(250)

        raw_page.wait_for_timeout.assert_awaited_once_with(250)

    @pytest.mark.asyncio
    async def test_scroll_passes_settings(self, raw_page):
        page = PlaywrightPage(raw_page, scroll_step_px=50, scroll_max_steps=4, scroll_interval_ms=0)

        await page.scroll_to_end()

        assert raw_page.evaluate.await_args.args[1] == {'step': 50, 'maxSteps': 4, 'interval': 0}

    def test_implements_page_handle(self, page):
        assert isinstance(page, PageHandle)
