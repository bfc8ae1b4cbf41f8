"""Maps a single stop, a route's stops, a route's shape, or an agency's routes.

Every function selects first and draws afterwards, so a lookup error is
raised before anything reaches the renderer. By default the result is an
interactive ``folium.Map``; pass another ``Renderer`` (for example
``MatplotlibRenderer``) to get a different artifact.
"""

from __future__ import annotations

from typing import Any, Optional

import geopandas as gpd

from gtfs_maps.config import DEFAULT_CONFIG, ROUTE_LABEL, STOPS_LABEL, MapConfig
from gtfs_maps.feed import GtfsFeed
from gtfs_maps.geometry import GeometrySimplifier
from gtfs_maps.render import FoliumRenderer, Renderer
from gtfs_maps.selectors import (
    NAME,
    RouteSelection,
    select_agency_routes,
    select_route_shapes,
    select_route_stops,
    select_stop,
)


def _renderer_or_default(renderer: Optional[Renderer], config: MapConfig) -> Renderer:
    if renderer is not None:
        return renderer
    return FoliumRenderer(tiles=config.tiles, max_zoom=config.stop_zoom)


def _draw_stops(renderer: Renderer, stops: gpd.GeoDataFrame, config: MapConfig) -> None:
    renderer.add_points(
        stops,
        color=config.stop_color,
        radius=config.stop_radius,
        fill_opacity=config.stop_fill_opacity,
        popup_field=NAME,
        name=STOPS_LABEL,
    )


def _draw_selection(renderer: Renderer, selection: RouteSelection, config: MapConfig) -> Any:
    renderer.add_lines(
        selection.lines, color=config.route_color, weight=config.route_weight, name=ROUTE_LABEL
    )
    if selection.stops is not None:
        _draw_stops(renderer, selection.stops, config)
        renderer.add_legend([(config.stop_color, STOPS_LABEL), (config.route_color, ROUTE_LABEL)])
    else:
        renderer.add_legend([(config.route_color, ROUTE_LABEL)])
    return renderer.build()


def map_gtfs_stop(
    feed: GtfsFeed,
    stop_id: str,
    *,
    renderer: Optional[Renderer] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> Any:
    """Map a single stop as one marker whose popup is the stop name.

    Raises:
        NotFoundError: ``Stop '<id>' was not found.``
    """
    stop = select_stop(feed, stop_id)
    renderer = _renderer_or_default(renderer, config)
    renderer.add_markers(stop, popup_field=NAME)
    return renderer.build()


def map_gtfs_route_stops(
    feed: GtfsFeed,
    route_id: str,
    *,
    renderer: Optional[Renderer] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> Any:
    """Map all stops served by a route as circle markers with a "Stops" legend.

    Raises:
        NotFoundError: ``No trips for Route ID '<id>' were found.``
    """
    stops = select_route_stops(feed, route_id)
    renderer = _renderer_or_default(renderer, config)
    _draw_stops(renderer, stops, config)
    renderer.add_legend([(config.stop_color, STOPS_LABEL)])
    return renderer.build()


def map_gtfs_route_shape(
    feed: GtfsFeed,
    route_id: str,
    include_stops: bool = True,
    *,
    renderer: Optional[Renderer] = None,
    simplifier: Optional[GeometrySimplifier] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> Any:
    """Map the shape(s) of a route, with its stops layered on top by default.

    Args:
        feed: GTFS feed with agency, routes, trips and shapes tables.
        route_id: Id of the route of interest.
        include_stops: Whether to layer the route's stops onto its shape.
        renderer: Where to draw; a new ``FoliumRenderer`` if omitted.
        simplifier: Line simplifier; shapely's by default.
        config: Colours, tolerance and the missing-join policy.

    Raises:
        NotFoundError: ``No shapes for Route ID '<id>' were found.``
        JoinError: A trip/route/agency/shape relation is broken and the
            policy is ``"raise"``.
    """
    selection = select_route_shapes(
        feed, route_id, include_stops, simplifier=simplifier, config=config
    )
    return _draw_selection(_renderer_or_default(renderer, config), selection, config)


def map_gtfs_agency_routes(
    feed: GtfsFeed,
    agency_id: str,
    include_stops: bool = True,
    *,
    renderer: Optional[Renderer] = None,
    simplifier: Optional[GeometrySimplifier] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> Any:
    """Map every route operated by an agency on one map with a shared legend.

    Raises:
        NotFoundError: The agency has no routes, or none with a shape.
        JoinError: As for :func:`map_gtfs_route_shape`.
    """
    selection = select_agency_routes(
        feed, agency_id, include_stops, simplifier=simplifier, config=config
    )
    return _draw_selection(_renderer_or_default(renderer, config), selection, config)
