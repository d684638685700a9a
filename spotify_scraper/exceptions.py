"""Error types for Spotify artist page scraping.

Only PageLoadError and ContainerNotFoundError abort an extraction. Everything
else degrades into default values inside the pipeline and is only logged.
"""

from typing import Optional, Sequence


class ScraperError(Exception):
    """Base class for errors that abort an extraction request."""


class InvalidArtistIdError(ScraperError, ValueError):
    """Artist identifier is not a 22 character base62 string."""

    def __init__(self, artist_id: str):
        self.artist_id = artist_id
        super().__init__(f"Invalid Spotify artist ID: {artist_id!r}")


class PageLoadError(ScraperError):
    """The artist page could not be loaded within the configured timeout."""

    def __init__(self, url: str, message: Optional[str] = None):
        self.url = url
        super().__init__(message or f"Failed to load {url}")


class ContainerNotFoundError(ScraperError):
    """None of the track container selectors matched the rendered page."""

    def __init__(self, candidates: Sequence[str]):
        self.candidates = tuple(candidates)
        super().__init__(
            f"Could not find track list with any known selector "
            f"(tried {len(self.candidates)}: {', '.join(self.candidates)})"
        )
