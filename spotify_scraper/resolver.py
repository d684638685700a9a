"""Selector catalog and cascading selector resolution.

Spotify's web player changes class names and test ids between rollouts, so
every logical target is looked up through a ranked list of candidate
selectors. The first candidate that matches wins and later candidates are
never tried, even if they would match more nodes.
"""

import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from spotify_scraper.page import PageHandle


@dataclass(frozen=True)
class SelectorCatalog:
    """Ranked candidate selectors per logical target, most reliable first."""

    track_container: Tuple[str, ...] = (
        '[data-testid="track-list"]',
        '.main-shelf-content',
        'section[aria-label="Popular"]',
        'section.artist-popular-tracks',
        'div[data-testid="artist-page"] section',
    )
    track_rows: Tuple[str, ...] = (
        '[data-testid="tracklist-row"]',
        'div[role="row"]',
        'div[data-testid="track-row"]',
        '.tracklist-row',
    )
    # Loosest row markers, only tried page-wide after track_rows found nothing
    fallback_track_rows: Tuple[str, ...] = (
        'div[aria-rowindex]',
    )
    track_name: Tuple[str, ...] = (
        '[data-testid="internal-track-link"] .encore-text-body-medium',
        '[data-testid="internal-track-link"] span',
        '.tracklist-name',
        'a[href^="/track/"] .encore-text-body-medium',
        '.encore-text-body-medium a',
    )
    track_link: Tuple[str, ...] = (
        'a[href^="/track/"]',
        'a[href*="/track/"]',
    )
    track_image: Tuple[str, ...] = (
        'img',
    )
    # Same-styled small text nodes holding play count and duration
    track_metrics: Tuple[str, ...] = (
        '.encore-text-body-small',
        'div[aria-colindex] span',
    )
    text_leaf: Tuple[str, ...] = (
        'span',
    )
    link: Tuple[str, ...] = (
        'a',
    )
    expand_button: Tuple[str, ...] = (
        'button.wi2HeHXOI471ZOh8ncCG[aria-expanded="false"]',
        'button[aria-expanded="false"] div.e-9640-text',
        'button[aria-expanded="false"]',
    )
    artist_name: Tuple[str, ...] = (
        "h1[data-testid='entityTitle']",
        'h1.encore-text-title-large',
        'h1.Type__TypeElement-sc-goli3j-0',
        'h1',
        '.artist-header h1',
        '.artist-name',
        'h1.artist',
    )
    # Every heading, used to pick the longest one when artist_name finds nothing
    artist_heading: Tuple[str, ...] = (
        'h1',
    )
    monthly_listeners: Tuple[str, ...] = (
        '.Ydwa1P5GkCggtLlSvphs',
        "[data-testid='monthly-listeners-label']",
        '.stats-listeners',
    )
    # Text scan when the listener selectors drift. Each page implementation
    # treats the other's text pseudo-class as no match: Playwright reads
    # :has-text(), BeautifulSoup reads :-soup-contains()
    monthly_listeners_text: Tuple[str, ...] = (
        'span:has-text("monthly listeners")',
        'span:-soup-contains("monthly listeners")',
        'div:has-text("monthly listeners")',
        'div:-soup-contains("monthly listeners")',
    )
    generic_track_link: Tuple[str, ...] = (
        'a[href*="/track/"]',
    )

    def __post_init__(self):
        for catalog_field in fields(self):
            candidates = getattr(self, catalog_field.name)
            if isinstance(candidates, str):
                raise ValueError(f"Selector list '{catalog_field.name}' must be a sequence, not a string")
            candidates = tuple(candidates)
            if not candidates:
                raise ValueError(f"Selector list '{catalog_field.name}' must not be empty")
            object.__setattr__(self, catalog_field.name, candidates)

    @classmethod
    def from_dict(cls, overrides: Dict[str, Sequence[str]]) -> 'SelectorCatalog':
        """Create a catalog with some targets replaced.

        Args:
            overrides: Mapping of target name to its new ranked candidate list

        Returns:
            SelectorCatalog with defaults for every target not overridden
        """
        known = {catalog_field.name for catalog_field in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown selector targets: {', '.join(sorted(unknown))}")
        return replace(cls(), **{name: tuple(value) for name, value in overrides.items()})

    def to_dict(self) -> Dict[str, list]:
        return {name: list(value) for name, value in asdict(self).items()}


DEFAULT_CATALOG = SelectorCatalog()


@dataclass(frozen=True)
class Match:
    """A candidate selector that matched.

    Attributes:
        selector: The winning candidate
        index: Position of the winning candidate in its list
        nodes: Every node the winning candidate matched
        value: Text or attribute content for single-target lookups
    """
    selector: str
    index: int
    nodes: Tuple[Any, ...]
    value: Optional[str] = None

    @property
    def first(self) -> Any:
        return self.nodes[0]


@dataclass(frozen=True)
class NotFound:
    """Every candidate was tried and none matched."""
    candidates: Tuple[str, ...]

    def __bool__(self) -> bool:
        return False


Resolution = Union[Match, NotFound]


class SelectorResolver:
    """Tries candidate selectors in order against a page or a node scope."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    async def resolve(self, page: PageHandle, candidates: Sequence[str], scope: Any = None,
                      wait_ms: Optional[int] = None) -> Resolution:
        """Return the node set of the first candidate that matches.

        Args:
            page: Page to query
            candidates: Ranked selector list
            scope: Node to search under, whole page when None
            wait_ms: If set, wait up to this long for each candidate to render
                before querying it

        Returns:
            Match with all nodes of the winning candidate, or NotFound
        """
        for index, selector in enumerate(candidates):
            if wait_ms is not None and not await page.wait_for(selector, wait_ms):
                self.logger.debug(f"Selector {selector} not found within {wait_ms}ms")
                continue

            nodes = await page.query_all(selector, scope)
            if nodes:
                self.logger.debug(f"Found {len(nodes)} node(s) with selector: {selector}")
                return Match(selector=selector, index=index, nodes=tuple(nodes))

        return NotFound(candidates=tuple(candidates))

    async def resolve_text(self, page: PageHandle, candidates: Sequence[str], scope: Any = None,
                           skip_empty: bool = True) -> Resolution:
        """Return the stripped text of the first candidate's first node.

        Candidates whose first node has no text are skipped when skip_empty
        is set, so an empty placeholder heading does not win.
        """
        for index, selector in enumerate(candidates):
            nodes = await page.query_all(selector, scope)
            if not nodes:
                continue

            text = (await page.read_text(nodes[0]) or "").strip()
            if skip_empty and not text:
                self.logger.debug(f"Selector {selector} matched but has no text")
                continue

            return Match(selector=selector, index=index, nodes=(nodes[0],), value=text)

        return NotFound(candidates=tuple(candidates))

    async def resolve_attribute(self, page: PageHandle, candidates: Sequence[str], name: str,
                                scope: Any = None) -> Resolution:
        """Return attribute `name` of the first candidate node that carries it."""
        for index, selector in enumerate(candidates):
            nodes = await page.query_all(selector, scope)
            if not nodes:
                continue

            value = await page.read_attribute(nodes[0], name)
            if value:
                return Match(selector=selector, index=index, nodes=(nodes[0],), value=value)

        return NotFound(candidates=tuple(candidates))

    async def count(self, page: PageHandle, candidates: Sequence[str], scope: Any = None) -> int:
        """Number of nodes matched by the winning candidate, 0 when none match."""
        resolution = await self.resolve(page, candidates, scope)
        return len(resolution.nodes) if isinstance(resolution, Match) else 0
