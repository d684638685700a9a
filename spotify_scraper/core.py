"""Core Spotify artist track scraping functionality.

This module provides a clean interface for extracting an artist's popular
tracks that can be used from the CLI, the HTTP API or any other application.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from spotify_scraper.browser import BrowserManager
from spotify_scraper.dataclasses import ExtractionResult, ScraperConfig
from spotify_scraper.exceptions import InvalidArtistIdError
from spotify_scraper.page import SnapshotPage
from spotify_scraper.resolver import DEFAULT_CATALOG, SelectorCatalog
from spotify_scraper.scraper import ArtistPageExtractor

ARTIST_ID_PATTERN = re.compile(r'[0-9A-Za-z]{22}')


def is_valid_artist_id(artist_id: Optional[str]) -> bool:
    """Check that artist_id is a 22 character base62 Spotify identifier."""
    return bool(artist_id) and ARTIST_ID_PATTERN.fullmatch(artist_id) is not None


class SpotifyArtistScraper:
    """Standalone Spotify artist track scraper for use in any application."""

    def __init__(self, config: Optional[ScraperConfig] = None,
                 catalog: SelectorCatalog = DEFAULT_CATALOG,
                 browser_manager: Optional[BrowserManager] = None) -> None:
        self.config = config or ScraperConfig()  # Use defaults if no config provided
        self.catalog = catalog
        self.browser_manager = browser_manager or BrowserManager(self.config)
        self.logger = logging.getLogger(__name__)

    def _create_extractor(self) -> ArtistPageExtractor:
        # One extractor per request, its state is never shared
        return ArtistPageExtractor(config=self.config, catalog=self.catalog)

    async def get_artist_tracks(self, artist_id: str) -> ExtractionResult:
        """Scrape the popular tracks of one artist.

        Args:
            artist_id: 22 character Spotify artist ID

        Returns:
            ExtractionResult with artist metadata, tracks and totals

        Raises:
            InvalidArtistIdError: artist_id is malformed, no page is loaded
            PageLoadError: The artist page did not load
            ContainerNotFoundError: No track list was found on the page
        """
        if not is_valid_artist_id(artist_id):
            raise InvalidArtistIdError(artist_id)

        url = self.config.artist_url(artist_id)
        self.logger.info(f"Scraping artist {artist_id}")

        result = await self._create_extractor().run(self.browser_manager, url, artist_id=artist_id)

        self.logger.info(f"Successfully extracted {result.total_tracks} tracks for {result.artist_name}")
        return result

    async def extract_snapshot(self, source: Union[str, Path],
                               artist_id: Optional[str] = None) -> ExtractionResult:
        """Extract tracks from saved artist page HTML without a browser.

        Args:
            source: HTML markup, or a path to a saved HTML file
            artist_id: Optional artist ID to record in the result

        Returns:
            ExtractionResult built from the static markup
        """
        if isinstance(source, Path):
            page = SnapshotPage.from_file(source)
            url = source.as_uri() if source.is_absolute() else str(source)
        else:
            page = SnapshotPage(source)
            url = None

        return await self._create_extractor().extract(page, artist_id=artist_id, url=url)
