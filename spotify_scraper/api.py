"""HTTP interface for the Spotify artist track scraper.

    GET /api?artistId=<22 char id>   scrape one artist
    GET /health                      liveness check

Run with `spotify-tracks --serve` or `uvicorn spotify_scraper.api:app`.
"""

import logging
import traceback
from typing import Callable, Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spotify_scraper import __version__
from spotify_scraper.core import SpotifyArtistScraper, is_valid_artist_id
from spotify_scraper.dataclasses import ScraperConfig

logger = logging.getLogger(__name__)

ScraperFactory = Callable[[ScraperConfig], SpotifyArtistScraper]


def create_app(config: Optional[ScraperConfig] = None,
               scraper_factory: Optional[ScraperFactory] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Scraper configuration, read from the environment when None
        scraper_factory: Builds the scraper used for each request
    """
    config = config or ScraperConfig.from_env()
    scraper_factory = scraper_factory or SpotifyArtistScraper

    app = FastAPI(title="Spotify Artist Scraper", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api")
    async def get_artist(artist_id: Optional[str] = Query(None, alias="artistId")):
        if not is_valid_artist_id(artist_id):
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "Invalid Spotify artist ID"},
            )

        try:
            result = await scraper_factory(config).get_artist_tracks(artist_id)
        except Exception as e:
            logger.error(f"Scraping artist {artist_id} failed: {e}")
            content = {
                "success": False,
                "error": str(e),
                "errorType": type(e).__name__,
            }
            if config.debug:
                content["details"] = traceback.format_exc()
            return JSONResponse(status_code=500, content=content)

        return {"success": True, **result.to_dict()}

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    return app


app = create_app()
