#!/usr/bin/env python3
"""Command-line interface for Spotify artist track scraping.

Scrapes one artist page and prints the result as JSON, replays a saved
artist page without a browser, or serves the HTTP API.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from spotify_scraper import __version__
from spotify_scraper.core import SpotifyArtistScraper, is_valid_artist_id
from spotify_scraper.dataclasses import ScraperConfig
from spotify_scraper.resolver import DEFAULT_CATALOG, SelectorCatalog


def setup_logging(debug: bool = False):
    """Configure logging for CLI."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Extract popular tracks from a Spotify artist page',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 0TnOYISbd1XYRBk9myaseg
  %(prog)s 0TnOYISbd1XYRBk9myaseg --output tracks.json
  %(prog)s --html saved_artist_page.html
  %(prog)s 0TnOYISbd1XYRBk9myaseg --no-headless --debug --debug-dir debug/
  %(prog)s --serve --port 3000

Environment Variables:
  SPOTIFY_SCRAPER_<FIELD>  Any ScraperConfig field, e.g.
                           SPOTIFY_SCRAPER_PAGE_TIMEOUT=60000
                           SPOTIFY_SCRAPER_HEADLESS=false
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        'artist_id',
        nargs='?',
        help='22 character Spotify artist ID'
    )

    parser.add_argument(
        '--html',
        help='Extract from a saved artist page HTML file instead of loading Spotify'
    )

    parser.add_argument(
        '--selectors',
        help='JSON file overriding selector lists, e.g. {"track_rows": ["div[role=row]"]}'
    )

    parser.add_argument(
        '-o', '--output',
        help='Write the JSON result to this file instead of stdout'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    # Browser configuration
    browser_group = parser.add_argument_group('browser options')
    browser_group.add_argument(
        '--no-headless',
        dest='headless',
        action='store_false',
        default=None,
        help='Show the browser window'
    )
    browser_group.add_argument(
        '--debug-dir',
        help='Save a screenshot and page HTML here when no track list is found'
    )

    # Server configuration
    server_group = parser.add_argument_group('server options')
    server_group.add_argument(
        '--serve',
        action='store_true',
        help='Serve the HTTP API instead of scraping once'
    )
    server_group.add_argument(
        '--host',
        default='127.0.0.1',
        help='Address to bind (default: 127.0.0.1)'
    )
    server_group.add_argument(
        '--port',
        type=int,
        default=3000,
        help='Port to listen on (default: 3000)'
    )

    return parser.parse_args(argv)


def create_config_from_args(args) -> ScraperConfig:
    """Create ScraperConfig from environment variables, overridden by command-line arguments."""
    config = ScraperConfig.from_env()

    overrides: Dict[str, Any] = {}
    if args.headless is not None:
        overrides['headless'] = args.headless
    if args.debug:
        overrides['debug'] = True
    if args.debug_dir:
        overrides['debug_dir'] = args.debug_dir

    return replace(config, **overrides)


def load_catalog(path: Optional[str]) -> SelectorCatalog:
    """Load selector overrides from a JSON file."""
    if not path:
        return DEFAULT_CATALOG

    with open(path, 'r', encoding='utf-8') as f:
        overrides = json.load(f)
    return SelectorCatalog.from_dict(overrides)


async def scrape(args, config: ScraperConfig, catalog: SelectorCatalog) -> Dict[str, Any]:
    """Run one extraction and return the JSON-ready result."""
    scraper = SpotifyArtistScraper(config, catalog=catalog)

    if args.html:
        result = await scraper.extract_snapshot(Path(args.html), artist_id=args.artist_id)
    else:
        result = await scraper.get_artist_tracks(args.artist_id)

    return {'success': True, **result.to_dict()}


def serve(config: ScraperConfig, host: str, port: int) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from spotify_scraper.api import create_app

    uvicorn.run(create_app(config), host=host, port=port, log_level='debug' if config.debug else 'info')


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.debug)
    logger = logging.getLogger(__name__)

    try:
        config = create_config_from_args(args)
        catalog = load_catalog(args.selectors)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.serve:
        serve(config, args.host, args.port)
        return 0

    # Require an artist ID unless replaying saved HTML
    if not args.html:
        if not args.artist_id:
            print("Error: artist_id argument is required", file=sys.stderr)
            print("Use --help for usage information", file=sys.stderr)
            return 1
        if not is_valid_artist_id(args.artist_id):
            print(f"Error: invalid Spotify artist ID: {args.artist_id}", file=sys.stderr)
            return 2
    elif not Path(args.html).is_file():
        print(f"Error: file does not exist: {args.html}", file=sys.stderr)
        return 1

    try:
        output = asyncio.run(scrape(args, config, catalog))

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        if args.debug:
            raise
        return 1

    text = json.dumps(output, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text + '\n', encoding='utf-8')
        print(f"Wrote {output['stats']['totalTracks']} tracks to {args.output}")
    else:
        print(text)

    return 0


if __name__ == '__main__':
    sys.exit(main())
