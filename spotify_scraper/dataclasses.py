import os
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

ENV_PREFIX = "SPOTIFY_SCRAPER_"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

DEFAULT_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(repr=True)
class ScraperConfig:
    """Configuration for the Spotify artist page scraper.

    All durations are milliseconds, matching Playwright's timeout arguments.
    """
    # Base URL configuration
    base_url: str = "https://open.spotify.com"  # Web player base URL (configurable for testing)

    # Browser settings
    headless: bool = True  # Set to False to watch the page while debugging selectors
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "en-US,en;q=0.9"
    viewport_width: int = 1920
    viewport_height: int = 1080
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    resource_blocking_enabled: bool = True
    # Image src attributes survive blocking, only the downloads are skipped
    blocked_resource_types: Tuple[str, ...] = ('font', 'media', 'image')

    # Timeouts
    page_timeout: int = 90000  # Initial navigation
    container_wait_ms: int = 10000  # Per track container candidate
    row_wait_ms: int = 5000  # Per track row candidate
    action_timeout_ms: int = 5000  # Any single query, read or click

    # Content expansion ("See more")
    target_track_count: int = 10
    expand_max_attempts: int = 3
    expand_settle_ms: int = 3000  # After each activation
    expand_retry_wait_ms: int = 2000  # Between unsuccessful rounds
    expand_final_wait_ms: int = 2000  # Once, after expansion was needed

    # Scrolling after expansion
    auto_scroll: bool = True
    scroll_step_px: int = 100
    scroll_max_steps: int = 200
    scroll_settle_ms: int = 1000

    # Diagnostics
    debug: bool = False  # Include tracebacks in API error responses
    debug_dir: Optional[str] = None  # Screenshot + HTML dump when the track list is missing

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ScraperConfig':
        """Create ScraperConfig from SPOTIFY_SCRAPER_* environment variables.

        Unset variables keep their defaults; e.g. SPOTIFY_SCRAPER_HEADLESS=false
        or SPOTIFY_SCRAPER_PAGE_TIMEOUT=60000.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        values: Dict[str, Any] = {}

        for config_field in fields(cls):
            raw = env.get(ENV_PREFIX + config_field.name.upper())
            if raw is None:
                continue

            default = getattr(defaults, config_field.name)
            if isinstance(default, bool):
                values[config_field.name] = raw.strip().lower() in _TRUE_VALUES
            elif isinstance(default, int):
                values[config_field.name] = int(raw)
            elif isinstance(default, tuple):
                values[config_field.name] = tuple(arg for arg in raw.split() if arg)
            elif default is None:
                values[config_field.name] = raw or None
            else:
                values[config_field.name] = raw

        return cls(**values)

    def artist_url(self, artist_id: str) -> str:
        """Build the public artist page URL."""
        return f"{self.base_url.rstrip('/')}/artist/{artist_id}"


@dataclass(repr=True)
class TrackRecord:
    """One track row as read from the page.

    Every field has a sentinel default so consumers never see a missing key.
    """
    name: str = "Unknown"
    image: Optional[str] = None
    stream_count: str = "0"
    duration: str = "0"
    track_id: Optional[str] = None

    @classmethod
    def placeholder(cls, row_index: int) -> 'TrackRecord':
        """Record emitted for a row whose extraction raised."""
        return cls(name=f"Unknown (Row {row_index + 1})", stream_count="0", duration="0")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(repr=True)
class NormalizedTrack(TrackRecord):
    """Track record plus its parsed stream count."""
    stream_count_numeric: int = 0


@dataclass(frozen=True)
class ExtractionResult:
    """Final structured result for one artist page.

    total_streams and total_tracks are derived from tracks when the result is
    built and cannot be set independently.
    """
    artist_name: str
    monthly_listeners: str
    tracks: Tuple[NormalizedTrack, ...]
    artist_id: Optional[str] = None
    url: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    total_streams: int = field(init=False)
    total_tracks: int = field(init=False)

    def __post_init__(self):
        tracks = tuple(self.tracks)
        object.__setattr__(self, 'tracks', tracks)
        object.__setattr__(self, 'total_streams', sum(track.stream_count_numeric for track in tracks))
        object.__setattr__(self, 'total_tracks', len(tracks))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape returned by the API and the CLI."""
        track_dicts: List[Dict[str, Any]] = [track.to_dict() for track in self.tracks]
        return {
            'artist': {
                'id': self.artist_id,
                'name': self.artist_name,
                'monthlyListeners': self.monthly_listeners,
            },
            'tracks': track_dicts,
            'stats': {
                'totalTracks': self.total_tracks,
                'totalStreams': self.total_streams,
            },
            'timestamp': self.timestamp,
        }
