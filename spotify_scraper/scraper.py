"""Extraction pipeline for one rendered Spotify artist page.

Stages run strictly in order against a single page handle:

    ACQUIRING -> LOCATING -> EXPANDING -> EXTRACTING -> NORMALIZING -> DONE

and any stage can end in FAILED. Only two conditions are fatal: the page
failing to load (PageLoadError) and no track container matching
(ContainerNotFoundError). Missing fields, rows that fail to parse and
expansion that falls short all degrade into sentinel values so callers get a
best-effort result whenever any row data is on the page.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, AsyncContextManager, List, Optional, Protocol, Sequence, Tuple

from spotify_scraper.classifier import FieldClassifier, RowFragments
from spotify_scraper.dataclasses import ExtractionResult, ScraperConfig, TrackRecord
from spotify_scraper.exceptions import ContainerNotFoundError
from spotify_scraper.expansion import ContentExpansionController
from spotify_scraper.normalizer import build_result, track_id_from_href
from spotify_scraper.page import PageHandle
from spotify_scraper.resolver import DEFAULT_CATALOG, Match, SelectorCatalog, SelectorResolver

DEFAULT_ARTIST_NAME = "Unknown Artist"
DEFAULT_MONTHLY_LISTENERS = "N/A"
UNAVAILABLE = "N/A"
MONTHLY_LISTENERS_PHRASE = "monthly listeners"


class ExtractionState(Enum):
    ACQUIRING = 'acquiring'
    LOCATING = 'locating'
    EXPANDING = 'expanding'
    EXTRACTING = 'extracting'
    NORMALIZING = 'normalizing'
    DONE = 'done'
    FAILED = 'failed'


TERMINAL_STATES = (ExtractionState.DONE, ExtractionState.FAILED)


class PageSource(Protocol):
    """Acquires a rendered page and releases it when the context exits."""

    def acquire_page(self, url: str) -> AsyncContextManager[PageHandle]:
        ...


class ArtistPageExtractor:
    """Runs the extraction stages for a single request.

    An instance tracks the state of one extraction; create a new one per
    request. Nothing is shared between instances.
    """

    def __init__(self, config: Optional[ScraperConfig] = None,
                 catalog: SelectorCatalog = DEFAULT_CATALOG,
                 resolver: Optional[SelectorResolver] = None,
                 classifier: Optional[FieldClassifier] = None,
                 expansion: Optional[ContentExpansionController] = None) -> None:
        self.config = config or ScraperConfig()
        self.catalog = catalog
        self.resolver = resolver or SelectorResolver()
        self.classifier = classifier or FieldClassifier()
        self.expansion = expansion or ContentExpansionController(
            catalog=self.catalog,
            resolver=self.resolver,
            settle_ms=self.config.expand_settle_ms,
            retry_wait_ms=self.config.expand_retry_wait_ms,
            final_wait_ms=self.config.expand_final_wait_ms,
        )
        self.logger = logging.getLogger(__name__)

        self.state: Optional[ExtractionState] = None
        self.history: List[ExtractionState] = []

    def _transition(self, state: ExtractionState) -> None:
        if self.state in TERMINAL_STATES:
            return
        self.logger.debug(f"Extraction state: {self.state.value if self.state else 'start'} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def run(self, page_source: PageSource, url: str,
                  artist_id: Optional[str] = None) -> ExtractionResult:
        """Acquire the page at url, extract it and release it on every exit path.

        Raises:
            PageLoadError: The page did not load within the configured timeout
            ContainerNotFoundError: No track container selector matched
        """
        self._transition(ExtractionState.ACQUIRING)
        try:
            async with page_source.acquire_page(url) as page:
                return await self.extract(page, artist_id=artist_id, url=url)
        except (Exception, asyncio.CancelledError):
            self._transition(ExtractionState.FAILED)
            raise

    async def extract(self, page: PageHandle, artist_id: Optional[str] = None,
                      url: Optional[str] = None) -> ExtractionResult:
        """Extract tracks and artist metadata from an already acquired page."""
        try:
            self._transition(ExtractionState.LOCATING)
            container = await self._locate_container(page)

            self._transition(ExtractionState.EXPANDING)
            await self._expand(page)

            self._transition(ExtractionState.EXTRACTING)
            records = await self._extract_tracks(page, container)

            self._transition(ExtractionState.NORMALIZING)
            artist_name = await self._resolve_artist_name(page)
            monthly_listeners = await self._resolve_monthly_listeners(page)
            result = build_result(artist_name, monthly_listeners, records, artist_id=artist_id, url=url)

            self._transition(ExtractionState.DONE)
            return result

        except (Exception, asyncio.CancelledError):
            self._transition(ExtractionState.FAILED)
            raise

    async def _locate_container(self, page: PageHandle) -> Any:
        resolution = await self.resolver.resolve(
            page, self.catalog.track_container, wait_ms=self.config.container_wait_ms
        )
        if not isinstance(resolution, Match):
            self.logger.error("Could not find track list with any known selector")
            raise ContainerNotFoundError(resolution.candidates)

        self.logger.info(f"Found tracks with selector: {resolution.selector}")
        return resolution.first

    async def _expand(self, page: PageHandle) -> None:
        try:
            await self.expansion.ensure_expanded(
                page,
                target_count=self.config.target_track_count,
                max_attempts=self.config.expand_max_attempts,
            )
        except Exception as e:
            self.logger.warning(f"Track list expansion failed, continuing with visible rows: {e}")

        if not self.config.auto_scroll:
            return
        try:
            await page.scroll_to_end()
            await page.wait(self.config.scroll_settle_ms)
        except Exception as e:
            self.logger.warning(f"Auto-scroll failed: {e}")

    async def _extract_tracks(self, page: PageHandle, container: Any) -> List[TrackRecord]:
        """Extract rows from the first row family that yields any."""
        families = (
            ('container rows', self.catalog.track_rows, container, self.config.row_wait_ms),
            ('page rows', self.catalog.track_rows, None, None),
            ('loose rows', self.catalog.fallback_track_rows, None, None),
        )

        for label, candidates, scope, wait_ms in families:
            resolution = await self.resolver.resolve(page, candidates, scope=scope, wait_ms=wait_ms)
            if not isinstance(resolution, Match):
                self.logger.debug(f"No track rows found among {label}")
                continue

            self.logger.info(f"Found {len(resolution.nodes)} tracks with selector: {resolution.selector} ({label})")
            records = []
            for index, row in enumerate(resolution.nodes):
                try:
                    records.append(await self._extract_row(page, row, index))
                except Exception as e:
                    self.logger.warning(f"Error extracting track {index}: {e}")
                    records.append(TrackRecord.placeholder(index))
            return records

        self.logger.warning("Trying generic track extraction as last resort")
        return await self._extract_generic_links(page)

    async def _extract_row(self, page: PageHandle, row: Any, index: int) -> TrackRecord:
        fragments = await self._read_fragments(page, row, index)
        fields = self.classifier.classify(fragments)
        self.logger.debug(f"Track {index} fragments: {' | '.join(fragments.metric_texts)} -> {fields.sources}")

        image = await self.resolver.resolve_attribute(page, self.catalog.track_image, 'src', scope=row)
        link = await self.resolver.resolve_attribute(page, self.catalog.track_link, 'href', scope=row)

        return TrackRecord(
            name=fields.name,
            image=image.value if isinstance(image, Match) else None,
            stream_count=fields.stream_count,
            duration=fields.duration,
            track_id=track_id_from_href(link.value) if isinstance(link, Match) else None,
        )

    async def _read_fragments(self, page: PageHandle, row: Any, index: int) -> RowFragments:
        name_candidates = []
        for selector in self.catalog.track_name:
            nodes = await page.query_all(selector, row)
            if nodes:
                name_candidates.append(await page.read_text(nodes[0]))

        return RowFragments(
            row_index=index,
            name_candidates=tuple(name_candidates),
            link_texts=await self._read_texts(page, self.catalog.link, row),
            leaf_texts=await self._read_texts(page, self.catalog.text_leaf, row),
            metric_texts=await self._read_texts(page, self.catalog.track_metrics, row),
        )

    async def _read_texts(self, page: PageHandle, candidates: Sequence[str], scope: Any) -> Tuple[str, ...]:
        resolution = await self.resolver.resolve(page, candidates, scope=scope)
        if not isinstance(resolution, Match):
            return ()
        return tuple([await page.read_text(node) for node in resolution.nodes])

    async def _extract_generic_links(self, page: PageHandle) -> List[TrackRecord]:
        resolution = await self.resolver.resolve(page, self.catalog.generic_track_link)
        if not isinstance(resolution, Match):
            self.logger.warning("No track links found anywhere on the page")
            return []

        records = []
        for index, link in enumerate(resolution.nodes):
            try:
                name = await page.read_text(link)
                href = await page.read_attribute(link, 'href')
                records.append(TrackRecord(
                    name=name or "Unknown",
                    track_id=track_id_from_href(href),
                    stream_count=UNAVAILABLE,
                    duration=UNAVAILABLE,
                ))
            except Exception as e:
                self.logger.warning(f"Error extracting track link {index}: {e}")
                records.append(TrackRecord.placeholder(index))

        self.logger.info(f"Generic extraction found {len(records)} track links")
        return records

    async def _resolve_artist_name(self, page: PageHandle) -> str:
        try:
            resolution = await self.resolver.resolve_text(page, self.catalog.artist_name)
            if isinstance(resolution, Match):
                return resolution.value

            # Longest heading is most likely the artist name
            heading = await self.resolver.resolve(page, self.catalog.artist_heading)
            if isinstance(heading, Match):
                texts = [await page.read_text(node) for node in heading.nodes]
                texts = [text for text in texts if text]
                if texts:
                    return max(texts, key=len)

        except Exception as e:
            self.logger.warning(f"Artist name element not found: {e}")

        return DEFAULT_ARTIST_NAME

    async def _resolve_monthly_listeners(self, page: PageHandle) -> str:
        try:
            resolution = await self.resolver.resolve_text(page, self.catalog.monthly_listeners)
            if isinstance(resolution, Match):
                return resolution.value

            text = await self._scan_monthly_listeners(page)
            if text:
                return text
            self.logger.info("Monthly listeners element not found")
        except Exception as e:
            self.logger.warning(f"Monthly listeners element not found: {e}")

        return DEFAULT_MONTHLY_LISTENERS

    async def _scan_monthly_listeners(self, page: PageHandle) -> Optional[str]:
        resolution = await self.resolver.resolve(page, self.catalog.monthly_listeners_text)
        if not isinstance(resolution, Match):
            return None

        texts = [await page.read_text(node) for node in resolution.nodes]
        texts = [text for text in texts if MONTHLY_LISTENERS_PHRASE in text.lower()]
        if not texts:
            return None

        # Ancestors contain the phrase too; the shortest text is the label itself
        text = min(texts, key=len)
        self.logger.info(f"Found monthly listeners by text scan with selector: {resolution.selector}")
        return text
