"""Pytest configuration and fixtures for Spotify scraper tests."""

from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from spotify_scraper.dataclasses import ScraperConfig
from spotify_scraper.resolver import DEFAULT_CATALOG

ROW_SELECTOR = DEFAULT_CATALOG.track_rows[0]
CONTAINER_SELECTOR = DEFAULT_CATALOG.track_container[0]
NAME_SELECTOR = DEFAULT_CATALOG.track_name[0]
METRIC_SELECTOR = DEFAULT_CATALOG.track_metrics[0]
EXPAND_SELECTOR = DEFAULT_CATALOG.expand_button[0]


class FakeNode:
    """Node with text, attributes and per-selector children."""

    def __init__(self, text="", attrs=None, children=None, fail=False):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.fail = fail

    def __repr__(self):
        return f"FakeNode({self.text!r})"


class FakePage:
    """In-memory PageHandle that records every call made against it."""

    def __init__(self, nodes=None):
        self.nodes = nodes or {}
        self.queries = []
        self.activations = []
        self.waits = []
        self.waited_for = []
        self.scrolls = 0
        self.on_activate = None

    async def query_all(self, selector, scope=None):
        self.queries.append((selector, scope))
        source = scope.children if scope is not None else self.nodes
        return list(source.get(selector, []))

    async def read_text(self, node):
        if node.fail:
            raise RuntimeError("Element is not attached to the DOM")
        return node.text

    async def read_attribute(self, node, name):
        if node.fail:
            raise RuntimeError("Element is not attached to the DOM")
        return node.attrs.get(name)

    async def activate(self, selector, direct=False):
        self.activations.append((selector, direct))
        if self.on_activate:
            self.on_activate(self, selector, direct)
        return True

    async def wait(self, duration_ms):
        self.waits.append(duration_ms)

    async def wait_for(self, selector, timeout_ms):
        self.waited_for.append((selector, timeout_ms))
        return bool(self.nodes.get(selector))

    async def scroll_to_end(self):
        self.scrolls += 1


class FakePageSource:
    """PageSource that hands out one page and counts acquisitions and releases."""

    def __init__(self, page):
        self.page = page
        self.acquired = 0
        self.released = 0
        self.urls = []

    @asynccontextmanager
    async def acquire_page(self, url):
        self.acquired += 1
        self.urls.append(url)
        try:
            yield self.page
        finally:
            self.released += 1


def make_row(name="Song Title", stream_count="1,045,221", duration="3:47",
             track_id="4uLU6hMCjMI75M1A2tKUQC", image="https://i.scdn.co/image/cover",
             fail=False):
    """Build a track row shaped like the web player's markup."""
    link = FakeNode(name, attrs={'href': f"/track/{track_id}"})
    return FakeNode(children={
        NAME_SELECTOR: [FakeNode(name, fail=fail)],
        'a': [link],
        'span': [FakeNode("1"), FakeNode(name), FakeNode(stream_count), FakeNode(duration)],
        METRIC_SELECTOR: [FakeNode(stream_count), FakeNode(duration)],
        'img': [FakeNode(attrs={'src': image})],
        'a[href^="/track/"]': [link],
    })


def make_artist_page(rows, artist_name="Test Artist", monthly_listeners="1,234,567 monthly listeners"):
    """Build a page with a track container holding rows plus artist metadata."""
    container = FakeNode(children={ROW_SELECTOR: list(rows)})
    nodes = {
        CONTAINER_SELECTOR: [container],
        ROW_SELECTOR: list(rows),
    }
    if artist_name:
        nodes[DEFAULT_CATALOG.artist_name[0]] = [FakeNode(artist_name)]
    if monthly_listeners:
        nodes[DEFAULT_CATALOG.monthly_listeners[0]] = [FakeNode(monthly_listeners)]
    return FakePage(nodes)


@pytest.fixture
def fast_config():
    """Config with every wait set to zero."""
    return ScraperConfig(
        container_wait_ms=0,
        row_wait_ms=0,
        expand_settle_ms=0,
        expand_retry_wait_ms=0,
        expand_final_wait_ms=0,
        scroll_settle_ms=0,
    )


@pytest.fixture
def sample_artist_html():
    """Sample Spotify artist page HTML."""
    return '''
    <html>
    <body>
        <div data-testid="artist-page">
            <h1 data-testid="entityTitle">Test Artist</h1>
            <span class="Ydwa1P5GkCggtLlSvphs">1,234,567 monthly listeners</span>
            <section aria-label="Popular">
                <div data-testid="track-list">
                    <div data-testid="tracklist-row">
                        <div aria-colindex="1"><span>1</span></div>
                        <div aria-colindex="2">
                            <img src="https://i.scdn.co/image/ab67616d00004851aaa" alt="">
                            <a data-testid="internal-track-link" href="/track/4uLU6hMCjMI75M1A2tKUQC">
                                <div class="encore-text-body-medium">Song Title</div>
                            </a>
                        </div>
                        <div aria-colindex="3"><span class="encore-text-body-small">1,045,221</span></div>
                        <div aria-colindex="4"><span class="encore-text-body-small">3:47</span></div>
                    </div>
                    <div data-testid="tracklist-row">
                        <div aria-colindex="1"><span>2</span></div>
                        <div aria-colindex="2">
                            <img src="https://i.scdn.co/image/ab67616d00004851bbb" alt="">
                            <a data-testid="internal-track-link" href="/track/7ouMYWpwJ422jRcDASZB7P?si=abc">
                                <div class="encore-text-body-medium">Another Song</div>
                            </a>
                        </div>
                        <div aria-colindex="3"><span class="encore-text-body-small">987</span></div>
                        <div aria-colindex="4"><span class="encore-text-body-small">2:05</span></div>
                    </div>
                    <div data-testid="tracklist-row">
                        <div aria-colindex="1"><span>3</span></div>
                        <div aria-colindex="2">
                            <a data-testid="internal-track-link" href="/track/0VjIjW4GlUZAMYd2vXMi3b">
                                <div class="encore-text-body-medium">Big Hit</div>
                            </a>
                        </div>
                        <div aria-colindex="3"><span class="encore-text-body-small">1.2M</span></div>
                        <div aria-colindex="4"><span class="encore-text-body-small">4:10</span></div>
                    </div>
                </div>
            </section>
        </div>
    </body>
    </html>
    '''


@pytest.fixture
def sample_artist_file(tmp_path, sample_artist_html):
    """Sample artist page saved to disk."""
    path = tmp_path / "artist.html"
    path.write_text(sample_artist_html, encoding='utf-8')
    return path


@pytest.fixture
def no_tracks_html():
    """Page without any track list, e.g. a consent wall."""
    return '''
    <html>
    <body>
        <div class="cookie-banner"><button>Accept cookies</button></div>
    </body>
    </html>
    '''
