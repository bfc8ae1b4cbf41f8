"""Command line entry point: writes one GTFS map to HTML or an image file.

Usage:
    python -m gtfs_maps <gtfs_dir> stop <stop_id> -o stop.html
    python -m gtfs_maps <gtfs_dir> route-shape <route_id> --no-stops -o route.png

The output format follows the file extension: ``.html`` gives an
interactive folium map, image extensions give a static matplotlib figure.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

from gtfs_maps.config import JOIN_POLICIES, SIMPLIFY_TOLERANCE, MapConfig
from gtfs_maps.errors import GtfsMapError
from gtfs_maps.feed import GtfsFeed
from gtfs_maps.logging_helper import setup_logging
from gtfs_maps.maps import (
    map_gtfs_agency_routes,
    map_gtfs_route_shape,
    map_gtfs_route_stops,
    map_gtfs_stop,
)
from gtfs_maps.render import FoliumRenderer, MatplotlibRenderer, Renderer, save_rendered

# =============================================================================
# CONFIGURATION
# =============================================================================

MAP_KINDS = ("stop", "route-stops", "route-shape", "agency-routes")
IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".svg", ".pdf"})

# =============================================================================
# FUNCTIONS
# =============================================================================


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    p = argparse.ArgumentParser(prog="gtfs_maps", description="Map GTFS stops and routes.")
    p.add_argument("gtfs_dir", type=str, help="Folder containing the GTFS .txt files.")
    p.add_argument("kind", choices=MAP_KINDS, help="What to map.")
    p.add_argument("id", type=str, help="Stop, route or agency id, depending on kind.")
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (.html, .png, ...). Defaults to '<kind>_<id>.html'.",
    )
    p.add_argument(
        "--no-stops",
        action="store_true",
        help="Leave stops off route-shape and agency-routes maps.",
    )
    p.add_argument(
        "--on-missing-join",
        choices=JOIN_POLICIES,
        default="raise",
        help="Abort, or drop the shape, when a trip/route/agency relation is missing.",
    )
    p.add_argument(
        "--tolerance",
        type=float,
        default=SIMPLIFY_TOLERANCE,
        help="Line simplification tolerance in degrees (0 disables it).",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return p


def make_renderer(out_path: Path, config: MapConfig, title: str) -> Renderer:
    """Pick the renderer matching the output file extension."""
    if out_path.suffix.lower() in IMAGE_SUFFIXES:
        return MatplotlibRenderer(title=title)
    return FoliumRenderer(tiles=config.tiles, max_zoom=config.stop_zoom)


def render_map(feed: GtfsFeed, kind: str, object_id: str, include_stops: bool, **kwargs):
    """Dispatch to the map function for *kind*."""
    if kind == "stop":
        return map_gtfs_stop(feed, object_id, **kwargs)
    if kind == "route-stops":
        return map_gtfs_route_stops(feed, object_id, **kwargs)
    if kind == "route-shape":
        return map_gtfs_route_shape(feed, object_id, include_stops, **kwargs)
    if kind == "agency-routes":
        return map_gtfs_agency_routes(feed, object_id, include_stops, **kwargs)
    raise ValueError(f"Unknown map kind: {kind}")


# =============================================================================
# MAIN
# =============================================================================


def main(argv: List[str] | None = None) -> int:
    """Entrypoint. Returns the process exit status."""
    args = build_arg_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = MapConfig(on_missing_join=args.on_missing_join, simplify_tolerance=args.tolerance)
    except ValueError as exc:
        logging.error("Invalid option: %s", exc)
        return 2

    out_path = Path(args.output or f"{args.kind}_{args.id}.html").expanduser()
    logging.info("Input GTFS Directory: %s", args.gtfs_dir)
    logging.info("Map: %s '%s' -> %s", args.kind, args.id, out_path)

    try:
        feed = GtfsFeed.from_folder(Path(args.gtfs_dir).expanduser())
        renderer = make_renderer(out_path, config, title=f"{args.kind} {args.id}")
        kwargs = {"renderer": renderer, "config": config}
        rendered = render_map(feed, args.kind, args.id, not args.no_stops, **kwargs)
        save_rendered(rendered, out_path)
    except (GtfsMapError, OSError, ValueError, RuntimeError) as exc:
        logging.error("ERROR: %s", exc)
        return 1

    return 0
