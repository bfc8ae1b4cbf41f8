"""Styling and behaviour defaults for the GTFS maps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# =============================================================================
# CONFIGURATION
# =============================================================================

GTFS_CRS = "EPSG:4326"  # WGS 84, as used by every GTFS coordinate

STOP_COLOR = "red"
ROUTE_COLOR = "blue"
STOP_RADIUS = 4
STOP_FILL_OPACITY = 0.7
ROUTE_WEIGHT = 3

# Douglas-Peucker tolerance in degrees
SIMPLIFY_TOLERANCE = 0.00001

TILES = "OpenStreetMap"
STOP_ZOOM = 16

STOPS_LABEL = "Stops"
ROUTE_LABEL = "Route"

JoinPolicy = Literal["raise", "drop"]
JOIN_POLICIES: tuple[str, ...] = ("raise", "drop")

# =============================================================================
# CONFIG OBJECT
# =============================================================================


@dataclass(frozen=True, slots=True)
class MapConfig:
    """Options shared by the map functions.

    Attributes:
        stop_color: Stroke and fill colour of stop circle markers.
        route_color: Stroke colour of route polylines.
        stop_radius: Stop circle radius in pixels.
        stop_fill_opacity: Fill opacity of stop circles, 0 to 1.
        route_weight: Polyline stroke width in pixels.
        simplify_tolerance: Tolerance handed to the geometry simplifier.
        tiles: Base tile layer name for interactive maps.
        stop_zoom: Zoom level used when a map shows a single stop.
        on_missing_join: ``"raise"`` aborts with JoinError when a trip, route
            or agency relation is missing; ``"drop"`` logs a warning and drops
            the affected shape.
    """

    stop_color: str = STOP_COLOR
    route_color: str = ROUTE_COLOR
    stop_radius: float = STOP_RADIUS
    stop_fill_opacity: float = STOP_FILL_OPACITY
    route_weight: float = ROUTE_WEIGHT
    simplify_tolerance: float = SIMPLIFY_TOLERANCE
    tiles: str = TILES
    stop_zoom: int = STOP_ZOOM
    on_missing_join: JoinPolicy = "raise"

    def __post_init__(self) -> None:
        if self.on_missing_join not in JOIN_POLICIES:
            raise ValueError(
                f"on_missing_join must be one of {JOIN_POLICIES}, got {self.on_missing_join!r}"
            )
        if self.simplify_tolerance < 0:
            raise ValueError("simplify_tolerance must be non-negative.")
        if self.stop_radius <= 0:
            raise ValueError("stop_radius must be positive.")
        if not 0 <= self.stop_fill_opacity <= 1:
            raise ValueError("stop_fill_opacity must be between 0 and 1.")


DEFAULT_CONFIG = MapConfig()
