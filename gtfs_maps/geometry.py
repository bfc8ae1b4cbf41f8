"""Builds route path LineStrings from GTFS shape points and simplifies them."""

from __future__ import annotations

import logging
from typing import Protocol

import geopandas as gpd
import pandas as pd
from shapely.geometry import LineString

from gtfs_maps.config import GTFS_CRS
from gtfs_maps.feed import SHAPE_ID, SHAPE_PT_LAT, SHAPE_PT_LON, SHAPE_PT_SEQUENCE


class GeometrySimplifier(Protocol):
    """Reduces the vertex count of a line within a tolerance, keeping its endpoints."""

    def simplify(self, line: LineString, tolerance: float) -> LineString: ...


class ShapelySimplifier:
    """Douglas-Peucker simplification through shapely."""

    def __init__(self, preserve_topology: bool = True) -> None:
        self.preserve_topology = preserve_topology

    def simplify(self, line: LineString, tolerance: float) -> LineString:
        return line.simplify(tolerance, preserve_topology=self.preserve_topology)


def empty_lines_gdf(columns: list[str] | None = None) -> gpd.GeoDataFrame:
    """An empty line GeoDataFrame in the GTFS CRS."""
    return gpd.GeoDataFrame(
        data=None, columns=(columns or [SHAPE_ID]) + ["geometry"], geometry=[], crs=GTFS_CRS
    )


def build_shape_lines(shape_points: pd.DataFrame) -> gpd.GeoDataFrame:
    """Connects shape points into one LineString per shape id.

    Points are ordered by ``shape_pt_sequence`` within each shape before
    being joined, so the result does not depend on the input row order.
    Shapes with fewer than two points are skipped with a warning.

    Args:
        shape_points: Rows of the shapes table.

    Returns:
        GeoDataFrame with ``shape_id`` and ``geometry`` columns, one row per
        shape, sorted by shape id.
    """
    if shape_points.empty:
        return empty_lines_gdf()

    # Ties on sequence are broken by coordinates to keep the order total
    ordered = shape_points.sort_values(
        by=[SHAPE_ID, SHAPE_PT_SEQUENCE, SHAPE_PT_LAT, SHAPE_PT_LON], kind="mergesort"
    )

    records: list[dict] = []
    for shape_id, group in ordered.groupby(SHAPE_ID, sort=False):
        coordinates = list(zip(group[SHAPE_PT_LON], group[SHAPE_PT_LAT], strict=True))
        if len(coordinates) < 2:
            logging.warning("Shape ID %s skipped: has fewer than 2 points.", shape_id)
            continue
        records.append({SHAPE_ID: shape_id, "geometry": LineString(coordinates)})

    if not records:
        return empty_lines_gdf()

    return gpd.GeoDataFrame(data=records, crs=GTFS_CRS)


def simplify_lines(
    lines: gpd.GeoDataFrame, simplifier: GeometrySimplifier, tolerance: float
) -> gpd.GeoDataFrame:
    """Returns a copy of *lines* with every geometry passed through *simplifier*."""
    if lines.empty or tolerance <= 0:
        return lines.copy()

    simplified = lines.copy()
    before = sum(len(geom.coords) for geom in lines.geometry)
    simplified["geometry"] = gpd.GeoSeries(
        [simplifier.simplify(geom, tolerance) for geom in lines.geometry],
        index=lines.index,
        crs=lines.crs,
    )
    after = sum(len(geom.coords) for geom in simplified.geometry)
    logging.debug("Simplified %d lines from %d to %d vertices.", len(lines), before, after)
    return simplified
