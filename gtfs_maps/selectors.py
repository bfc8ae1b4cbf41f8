"""Selects the stops and route paths that the GTFS maps draw.

Each selector filters the feed tables by id and reshapes the matching rows
into point or line GeoDataFrames in WGS 84:

    - select_stop: one stop as a point
    - select_route_stops: every stop served by any trip on a route
    - select_route_shapes: one line per shape used by a route, with route
      and agency attributes, plus optionally the route's stops
    - select_agency_routes: the above for every route of an agency

Selectors never mutate the feed and may be called from several threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

import geopandas as gpd
import pandas as pd

from gtfs_maps.config import DEFAULT_CONFIG, GTFS_CRS, JoinPolicy, MapConfig
from gtfs_maps.errors import JoinError, NotFoundError
from gtfs_maps.feed import (
    AGENCY_ID,
    ROUTE_ATTRIBUTES,
    ROUTE_ID,
    SHAPE_ID,
    STOP_ID,
    STOP_LAT,
    STOP_LON,
    STOP_NAME,
    TRIP_ID,
    GtfsFeed,
)
from gtfs_maps.geometry import (
    GeometrySimplifier,
    ShapelySimplifier,
    build_shape_lines,
    empty_lines_gdf,
    simplify_lines,
)

# Output column names of stop point layers
NAME = "name"
LAT = "lat"
LNG = "lng"
STOP_COLUMNS: list[str] = [STOP_ID, NAME, LAT, LNG]

TRIP_RELATION = "trips.route_id -> routes"
AGENCY_RELATION = "routes.agency_id -> agency"
SHAPE_RELATION = "trips.shape_id -> shapes"


@dataclass(frozen=True, eq=False)
class RouteSelection:
    """Lines (and optionally stops) selected for one route or agency.

    Attributes:
        lines: One LineString row per (route_id, shape_id) with route and
            agency attributes.
        stops: Stop points served by the routes, or ``None`` when stops
            were not requested.
    """

    lines: gpd.GeoDataFrame
    stops: Optional[gpd.GeoDataFrame] = None


# =============================================================================
# HELPERS
# =============================================================================


def _check_id(value: str, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} must be a non-empty string, got {value!r}.")
    return value


def _stop_points(stops: pd.DataFrame) -> gpd.GeoDataFrame:
    """Projects stops rows to ``stop_id``, ``name``, ``lat``, ``lng`` points."""
    points = (
        stops[[STOP_ID, STOP_NAME, STOP_LAT, STOP_LON]]
        .rename(columns={STOP_NAME: NAME, STOP_LAT: LAT, STOP_LON: LNG})
        .reset_index(drop=True)
    )
    return gpd.GeoDataFrame(
        points, geometry=gpd.points_from_xy(points[LNG], points[LAT]), crs=GTFS_CRS
    )


def _route_trip_ids(feed: GtfsFeed, route_id: str) -> pd.Series:
    trips = feed.trips[feed.trips[ROUTE_ID].isin([route_id])]
    if trips.empty:
        raise NotFoundError(
            f"No trips for Route ID '{route_id}' were found.", kind="trips", requested_id=route_id
        )
    return trips[TRIP_ID]


def _stops_for_trips(feed: GtfsFeed, trip_ids: pd.Series) -> gpd.GeoDataFrame:
    stop_times = feed.stop_times
    stop_ids = stop_times.loc[stop_times[TRIP_ID].isin(trip_ids), STOP_ID].dropna().unique()
    stops = feed.stops[feed.stops[STOP_ID].isin(stop_ids)].drop_duplicates(subset=STOP_ID)
    logging.debug("%d trips serve %d distinct stops.", trip_ids.nunique(), len(stops))
    return _stop_points(stops)


def _display_ids(ids: Iterable) -> list[str]:
    return [str(value) if pd.notna(value) else "<blank>" for value in ids]


def _missing_relation(relation: str, ids: Iterable, policy: JoinPolicy) -> None:
    """Raises JoinError, or logs a warning when the policy is "drop"."""
    shown = _display_ids(ids)
    if policy == "raise":
        raise JoinError(relation, shown)
    logging.warning(
        "Dropping shapes: join %s found no match for %s.", relation, ", ".join(sorted(set(shown)))
    )


def _shape_metadata(feed: GtfsFeed, trips: pd.DataFrame, policy: JoinPolicy) -> pd.DataFrame:
    """Joins trips -> routes -> agency, one row per (route, shape) pair."""
    pairs = trips.loc[trips[SHAPE_ID].notna(), [ROUTE_ID, SHAPE_ID]].drop_duplicates()

    routes = feed.routes[[ROUTE_ID, *ROUTE_ATTRIBUTES, AGENCY_ID]].drop_duplicates(subset=ROUTE_ID)
    joined = pairs.merge(routes, on=ROUTE_ID, how="left", indicator=True)
    orphan = joined["_merge"] == "left_only"
    if orphan.any():
        _missing_relation(TRIP_RELATION, joined.loc[orphan, ROUTE_ID], policy)
    joined = joined.loc[~orphan].drop(columns="_merge")

    # Blank keys would match each other in the merge
    agency = feed.agency.dropna(subset=[AGENCY_ID]).drop_duplicates(subset=AGENCY_ID)
    joined = joined.merge(agency, on=AGENCY_ID, how="left", indicator=True)
    orphan = (joined["_merge"] == "left_only") | joined[AGENCY_ID].isna()
    if orphan.any():
        _missing_relation(AGENCY_RELATION, joined.loc[orphan, AGENCY_ID], policy)
    joined = joined.loc[~orphan].drop(columns="_merge")

    return joined.drop_duplicates(
        subset=[ROUTE_ID, SHAPE_ID, *ROUTE_ATTRIBUTES, AGENCY_ID]
    ).reset_index(drop=True)


# =============================================================================
# SELECTORS
# =============================================================================


def select_stop(feed: GtfsFeed, stop_id: str) -> gpd.GeoDataFrame:
    """Looks up a single stop.

    Args:
        feed: Feed exposing a stops table.
        stop_id: Id of the stop of interest.

    Returns:
        One-row GeoDataFrame with ``stop_id``, ``name``, ``lat``, ``lng``
        and a Point geometry.

    Raises:
        ValueError: *stop_id* is empty.
        InvalidFeedError: The feed has no stops table.
        NotFoundError: No stop has that id.
    """
    stop_id = _check_id(stop_id, "stop_id")
    feed.require("stops")

    matches = feed.stops[feed.stops[STOP_ID].isin([stop_id])]
    if matches.empty:
        raise NotFoundError(
            f"Stop '{stop_id}' was not found.", kind="stop", requested_id=stop_id
        )
    if len(matches) > 1:
        logging.warning("Stop ID %s appears %d times; using the first row.", stop_id, len(matches))

    return _stop_points(matches.head(1))


def select_route_stops(feed: GtfsFeed, route_id: str) -> gpd.GeoDataFrame:
    """Collects the distinct stops visited by any trip of a route.

    A route whose trips have no stop times yields an empty GeoDataFrame,
    not an error.

    Raises:
        ValueError: *route_id* is empty.
        InvalidFeedError: stops, trips or stop_times missing.
        NotFoundError: The route has no trips.
    """
    route_id = _check_id(route_id, "route_id")
    feed.require("stops", "trips", "stop_times")

    return _stops_for_trips(feed, _route_trip_ids(feed, route_id))


def select_route_shapes(
    feed: GtfsFeed,
    route_id: str,
    include_stops: bool = True,
    *,
    simplifier: Optional[GeometrySimplifier] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> RouteSelection:
    """Builds one simplified line per shape used by a route.

    Shape points are ordered by sequence before being joined. Each line
    carries ``route_id``, ``shape_id``, the route attributes, ``agency_id``
    and the agency's own columns; a (route, shape) pair appears once however
    many trips share it.

    Args:
        feed: Feed exposing routes, trips, shapes and agency (plus stops and
            stop_times when *include_stops* is set).
        route_id: Id of the route of interest.
        include_stops: Also select the route's stops, as in
            :func:`select_route_stops`.
        simplifier: Line simplifier; defaults to :class:`ShapelySimplifier`.
        config: Supplies ``simplify_tolerance`` and ``on_missing_join``.

    Returns:
        RouteSelection with the lines and, when requested, the stops.

    Raises:
        ValueError: *route_id* is empty.
        InvalidFeedError: A required table is missing.
        NotFoundError: No trip of the route references a shape.
        JoinError: A trip's route, a route's agency, or a referenced shape is
            missing and ``config.on_missing_join`` is ``"raise"``.
    """
    route_id = _check_id(route_id, "route_id")
    tables = ["routes", "trips", "shapes", "agency"]
    if include_stops:
        tables += ["stops", "stop_times"]
    feed.require(*tables)

    trips = feed.trips[feed.trips[ROUTE_ID].isin([route_id])]
    shape_ids = trips[SHAPE_ID].dropna().unique()
    if len(shape_ids) == 0:
        raise NotFoundError(
            f"No shapes for Route ID '{route_id}' were found.",
            kind="shapes",
            requested_id=route_id,
        )

    metadata = _shape_metadata(feed, trips, config.on_missing_join)

    points = feed.shapes[feed.shapes[SHAPE_ID].isin(metadata[SHAPE_ID])]
    missing_shapes = set(metadata[SHAPE_ID]).difference(points[SHAPE_ID])
    if missing_shapes:
        _missing_relation(SHAPE_RELATION, missing_shapes, config.on_missing_join)
        metadata = metadata[~metadata[SHAPE_ID].isin(missing_shapes)]

    lines = simplify_lines(
        build_shape_lines(points), simplifier or ShapelySimplifier(), config.simplify_tolerance
    )
    columns = list(metadata.columns)
    if lines.empty:
        logging.warning("Route %s has no drawable shapes.", route_id)
        lines = empty_lines_gdf(columns)
    else:
        lines = lines.merge(metadata, on=SHAPE_ID, how="inner")[columns + ["geometry"]]

    stops = None
    if include_stops:
        stops = _stops_for_trips(feed, _route_trip_ids(feed, route_id))

    logging.info("Route %s: %d shapes selected.", route_id, len(lines))
    return RouteSelection(lines=lines, stops=stops)


def select_agency_routes(
    feed: GtfsFeed,
    agency_id: str,
    include_stops: bool = True,
    *,
    simplifier: Optional[GeometrySimplifier] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> RouteSelection:
    """Selects the lines (and stops) of every route operated by an agency.

    Routes without any shape are skipped with a warning. Stops shared by
    several routes appear once.

    Raises:
        ValueError: *agency_id* is empty.
        InvalidFeedError: A required table is missing.
        NotFoundError: The agency operates no routes, or its routes yield no
            line at all (no shapes, only one-point shapes, or every shape
            dropped under the "drop" join policy).
        JoinError: As for :func:`select_route_shapes`.
    """
    agency_id = _check_id(agency_id, "agency_id")
    tables = ["routes", "trips", "shapes", "agency"]
    if include_stops:
        tables += ["stops", "stop_times"]
    feed.require(*tables)

    routes = feed.routes
    route_ids = routes.loc[routes[AGENCY_ID].isin([agency_id]), ROUTE_ID].dropna().unique()
    if len(route_ids) == 0:
        raise NotFoundError(
            f"No routes for Agency ID '{agency_id}' were found.",
            kind="routes",
            requested_id=agency_id,
        )

    line_parts: list[gpd.GeoDataFrame] = []
    stop_parts: list[gpd.GeoDataFrame] = []
    for route_id in route_ids:
        try:
            selection = select_route_shapes(
                feed, route_id, include_stops, simplifier=simplifier, config=config
            )
        except NotFoundError as exc:
            logging.warning("Skipping route %s: %s", route_id, exc)
            continue
        line_parts.append(selection.lines)
        if selection.stops is not None:
            stop_parts.append(selection.stops)

    lines = None
    if line_parts:
        lines = gpd.GeoDataFrame(pd.concat(line_parts, ignore_index=True), crs=GTFS_CRS)
    if lines is None or lines.empty:
        raise NotFoundError(
            f"No shapes for Agency ID '{agency_id}' were found.",
            kind="shapes",
            requested_id=agency_id,
        )

    stops = None
    if include_stops:
        stops = gpd.GeoDataFrame(
            pd.concat(stop_parts, ignore_index=True)
            .drop_duplicates(subset=STOP_ID)
            .reset_index(drop=True),
            crs=GTFS_CRS,
        )

    logging.info(
        "Agency %s: %d routes, %d shapes selected.", agency_id, len(line_parts), len(lines)
    )
    return RouteSelection(lines=lines, stops=stops)
