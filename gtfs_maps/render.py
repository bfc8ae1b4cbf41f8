"""Draws selected stops and route lines.

Map functions talk to a ``Renderer``: they hand it point and line
GeoDataFrames plus a legend, then call ``build()`` for the finished map.

    - FoliumRenderer: interactive Leaflet map (``folium.Map``) on a tile layer
    - MatplotlibRenderer: static figure (``matplotlib.figure.Figure``)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import folium
import geopandas as gpd
from branca.element import MacroElement, Template
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from gtfs_maps.config import STOP_ZOOM, TILES

LegendEntry = tuple[str, str]  # (color, label)

# Line attributes shown when hovering a route on the interactive map
LINE_TOOLTIP_FIELDS: tuple[str, ...] = (
    "route_id",
    "route_short_name",
    "route_long_name",
    "shape_id",
    "agency_name",
)


class Renderer(Protocol):
    """Capability the map functions draw through."""

    def add_markers(self, points: gpd.GeoDataFrame, *, popup_field: str) -> None: ...

    def add_points(
        self,
        points: gpd.GeoDataFrame,
        *,
        color: str,
        radius: float,
        fill_opacity: float,
        popup_field: str,
        name: str,
    ) -> None: ...

    def add_lines(
        self, lines: gpd.GeoDataFrame, *, color: str, weight: float, name: str
    ) -> None: ...

    def add_legend(self, entries: Sequence[LegendEntry]) -> None: ...

    def build(self) -> Any: ...


# =============================================================================
# FOLIUM
# =============================================================================

_LEGEND_TEMPLATE = """
{% macro html(this, kwargs) %}
<div style="position: fixed; bottom: 30px; right: 10px; z-index: 9999;
            background: white; padding: 6px 10px; border: 1px solid #999;
            border-radius: 4px; font-size: 12px;">
  {% for color, label in this.entries %}
  <div>
    <span style="display: inline-block; width: 12px; height: 12px;
                 margin-right: 6px; background: {{ color }};"></span>{{ label }}
  </div>
  {% endfor %}
</div>
{% endmacro %}
"""


class Legend(MacroElement):
    """Fixed-position categorical legend: one coloured swatch per label."""

    _template = Template(_LEGEND_TEMPLATE)

    def __init__(self, entries: Sequence[LegendEntry]) -> None:
        super().__init__()
        self._name = "Legend"
        self.entries = list(entries)


class FoliumRenderer:
    """Builds a ``folium.Map`` fitted to everything that was drawn."""

    def __init__(self, tiles: str = TILES, max_zoom: int = STOP_ZOOM) -> None:
        self.max_zoom = max_zoom
        self._map = folium.Map(tiles=tiles)
        self._bounds: list[float] | None = None  # [min_lat, min_lng, max_lat, max_lng]

    def _extend_bounds(self, gdf: gpd.GeoDataFrame) -> None:
        if gdf.empty:
            return
        minx, miny, maxx, maxy = gdf.total_bounds
        if any(math.isnan(v) for v in (minx, miny, maxx, maxy)):
            return
        if self._bounds is None:
            self._bounds = [miny, minx, maxy, maxx]
        else:
            self._bounds = [
                min(self._bounds[0], miny),
                min(self._bounds[1], minx),
                max(self._bounds[2], maxy),
                max(self._bounds[3], maxx),
            ]

    def add_markers(self, points: gpd.GeoDataFrame, *, popup_field: str) -> None:
        for _, row in points.iterrows():
            folium.Marker(
                location=[row.geometry.y, row.geometry.x],
                popup=folium.Popup(str(row[popup_field])),
            ).add_to(self._map)
        self._extend_bounds(points)

    def add_points(
        self,
        points: gpd.GeoDataFrame,
        *,
        color: str,
        radius: float,
        fill_opacity: float,
        popup_field: str,
        name: str,
    ) -> None:
        group = folium.FeatureGroup(name=name, show=True)
        for _, row in points.iterrows():
            folium.CircleMarker(
                location=[row.geometry.y, row.geometry.x],
                radius=radius,
                color=color,
                stroke=True,
                fill=True,
                fill_color=color,
                fill_opacity=fill_opacity,
                popup=folium.Popup(str(row[popup_field])),
            ).add_to(group)
        group.add_to(self._map)
        self._extend_bounds(points)

    def add_lines(self, lines: gpd.GeoDataFrame, *, color: str, weight: float, name: str) -> None:
        if lines.empty:
            logging.info("No lines to draw for layer '%s'.", name)
            return

        attributes = [col for col in lines.columns if col != lines.geometry.name]
        tooltip_fields = [col for col in LINE_TOOLTIP_FIELDS if col in attributes]
        folium.GeoJson(
            lines,
            name=name,
            style_function=lambda _feature: {"color": color, "weight": weight},
            tooltip=folium.GeoJsonTooltip(fields=tooltip_fields) if tooltip_fields else None,
            popup=folium.GeoJsonPopup(fields=attributes) if attributes else None,
        ).add_to(self._map)
        self._extend_bounds(lines)

    def add_legend(self, entries: Sequence[LegendEntry]) -> None:
        self._map.add_child(Legend(entries))

    def build(self) -> folium.Map:
        if self._bounds is not None:
            min_lat, min_lng, max_lat, max_lng = self._bounds
            self._map.fit_bounds([[min_lat, min_lng], [max_lat, max_lng]], max_zoom=self.max_zoom)
        return self._map


# =============================================================================
# MATPLOTLIB
# =============================================================================


class MatplotlibRenderer:
    """Builds a static figure of the selection, in lon/lat axes."""

    def __init__(self, figsize: tuple[float, float] = (8, 8), title: str | None = None) -> None:
        self.figure = Figure(figsize=figsize)
        self.ax = self.figure.subplots()
        self.title = title

    def add_markers(self, points: gpd.GeoDataFrame, *, popup_field: str) -> None:
        for _, row in points.iterrows():
            self.ax.plot(row.geometry.x, row.geometry.y, "kv", markersize=10)
            self.ax.annotate(
                str(row[popup_field]),
                xy=(row.geometry.x, row.geometry.y),
                xytext=(6, 6),
                textcoords="offset points",
                fontsize=9,
            )

    def add_points(
        self,
        points: gpd.GeoDataFrame,
        *,
        color: str,
        radius: float,
        fill_opacity: float,
        popup_field: str,
        name: str,
    ) -> None:
        if points.empty:
            return
        self.ax.scatter(
            points.geometry.x,
            points.geometry.y,
            s=(radius * 2) ** 2,
            c=color,
            alpha=fill_opacity,
            edgecolors=color,
            label=name,
            zorder=3,
        )

    def add_lines(self, lines: gpd.GeoDataFrame, *, color: str, weight: float, name: str) -> None:
        if lines.empty:
            return
        lines.plot(ax=self.ax, color=color, linewidth=weight, alpha=0.8, zorder=2)

    def add_legend(self, entries: Sequence[LegendEntry]) -> None:
        handles = [Line2D([0], [0], color=color, lw=4, label=label) for color, label in entries]
        self.ax.legend(handles=handles, loc="best")

    def build(self) -> Figure:
        if self.title:
            self.ax.set_title(self.title)
        self.ax.set_xlabel("Longitude")
        self.ax.set_ylabel("Latitude")
        self.ax.set_aspect("equal", adjustable="datalim")
        return self.figure


# =============================================================================
# OUTPUT
# =============================================================================


def save_rendered(rendered: Any, out_path: Path) -> None:
    """Writes a built map to disk: folium maps as HTML, figures as images.

    Raises:
        TypeError: *rendered* is neither a folium map nor a figure.
        IOError: The file cannot be written.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if isinstance(rendered, folium.Map):
            rendered.save(str(out_path))
        elif isinstance(rendered, Figure):
            rendered.savefig(out_path, dpi=300, bbox_inches="tight")
        else:
            raise TypeError(f"Cannot save object of type {type(rendered).__name__}.")
    except OSError as e:
        raise IOError(f"Could not write map {out_path}: {e}") from e
    logging.info("Saved map to: %s", out_path)
