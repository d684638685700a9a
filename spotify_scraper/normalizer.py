"""Conversion of raw track text into typed values and page totals."""

import logging
from typing import Iterable, List, Optional, Union
from urllib.parse import urlparse

from spotify_scraper.dataclasses import ExtractionResult, NormalizedTrack, TrackRecord
from spotify_scraper.text_utils import THOUSANDS_SEPARATORS

logger = logging.getLogger(__name__)

_SEPARATOR_TABLE = str.maketrans('', '', THOUSANDS_SEPARATORS)


def clean_stream_count(stream_count: Optional[Union[str, int]]) -> int:
    """Parse a play count like "1,234,567" into an integer.

    Deliberately lossy: abbreviated forms ("1.2M"), sentinels ("N/A") and
    anything else that is not a plain integer once separators are removed
    become 0.
    """
    if stream_count is None:
        return 0
    if isinstance(stream_count, int):
        return max(stream_count, 0)

    cleaned = stream_count.strip().translate(_SEPARATOR_TABLE)
    if not cleaned.isdigit():
        return 0
    try:
        return int(cleaned)
    except ValueError:
        # isdigit() accepts superscripts and other digits int() rejects
        return 0


def track_id_from_href(href: Optional[str]) -> Optional[str]:
    """Return the final path segment of a track permalink.

    "/track/4uLU6hMCjMI75M1A2tKUQC?si=abc" -> "4uLU6hMCjMI75M1A2tKUQC"
    """
    if not href:
        return None
    segments = [segment for segment in urlparse(href).path.split('/') if segment]
    return segments[-1] if segments else None


def normalize(raw: TrackRecord) -> NormalizedTrack:
    return NormalizedTrack(
        name=raw.name,
        image=raw.image,
        stream_count=raw.stream_count,
        duration=raw.duration,
        track_id=raw.track_id,
        stream_count_numeric=clean_stream_count(raw.stream_count),
    )


def normalize_all(raws: Iterable[TrackRecord]) -> List[NormalizedTrack]:
    """Normalize rows, keeping page order."""
    return [normalize(raw) for raw in raws]


def build_result(artist_name: str, monthly_listeners: str, raws: Iterable[TrackRecord],
                 artist_id: Optional[str] = None, url: Optional[str] = None) -> ExtractionResult:
    """Normalize every row and assemble the result; totals are computed once here."""
    tracks = normalize_all(raws)
    result = ExtractionResult(
        artist_name=artist_name,
        monthly_listeners=monthly_listeners,
        tracks=tuple(tracks),
        artist_id=artist_id,
        url=url,
    )
    logger.info(f"Normalized {result.total_tracks} tracks, {result.total_streams} total streams")
    return result
