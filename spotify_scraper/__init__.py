"""Spotify artist page track scraping modules."""

__version__ = "1.0.0"

# Core standalone functionality
from .dataclasses import ScraperConfig, TrackRecord, NormalizedTrack, ExtractionResult
from .core import (
    SpotifyArtistScraper,
    is_valid_artist_id,
)
from .exceptions import (
    ScraperError,
    InvalidArtistIdError,
    PageLoadError,
    ContainerNotFoundError,
)

# Extraction components (for advanced usage)
from .resolver import SelectorCatalog, SelectorResolver, DEFAULT_CATALOG
from .classifier import FieldClassifier, RowFragments
from .expansion import ContentExpansionController
from .scraper import ArtistPageExtractor, ExtractionState
from .page import PageHandle, PlaywrightPage, SnapshotPage
from .browser import BrowserManager

__all__ = [
    # Version
    '__version__',

    # Core API
    'SpotifyArtistScraper',
    'ScraperConfig',
    'TrackRecord',
    'NormalizedTrack',
    'ExtractionResult',
    'is_valid_artist_id',

    # Errors
    'ScraperError',
    'InvalidArtistIdError',
    'PageLoadError',
    'ContainerNotFoundError',

    # Extraction components (for advanced usage)
    'SelectorCatalog',
    'SelectorResolver',
    'DEFAULT_CATALOG',
    'FieldClassifier',
    'RowFragments',
    'ContentExpansionController',
    'ArtistPageExtractor',
    'ExtractionState',
    'PageHandle',
    'PlaywrightPage',
    'SnapshotPage',
    'BrowserManager',
]
