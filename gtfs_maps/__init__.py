"""Quick maps of GTFS stops, routes and agencies."""

from gtfs_maps.config import MapConfig
from gtfs_maps.errors import GtfsMapError, InvalidFeedError, JoinError, NotFoundError
from gtfs_maps.feed import GtfsFeed, load_gtfs_data
from gtfs_maps.geometry import GeometrySimplifier, ShapelySimplifier
from gtfs_maps.maps import (
    map_gtfs_agency_routes,
    map_gtfs_route_shape,
    map_gtfs_route_stops,
    map_gtfs_stop,
)
from gtfs_maps.render import FoliumRenderer, MatplotlibRenderer, Renderer
from gtfs_maps.selectors import (
    RouteSelection,
    select_agency_routes,
    select_route_shapes,
    select_route_stops,
    select_stop,
)

__all__ = [
    "FoliumRenderer",
    "GeometrySimplifier",
    "GtfsFeed",
    "GtfsMapError",
    "InvalidFeedError",
    "JoinError",
    "MapConfig",
    "MatplotlibRenderer",
    "NotFoundError",
    "Renderer",
    "RouteSelection",
    "ShapelySimplifier",
    "load_gtfs_data",
    "map_gtfs_agency_routes",
    "map_gtfs_route_shape",
    "map_gtfs_route_stops",
    "map_gtfs_stop",
    "select_agency_routes",
    "select_route_shapes",
    "select_route_stops",
    "select_stop",
]
