from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pytest

from gtfs_maps.feed import GtfsFeed

SAMPLE_GTFS_DIR = Path(__file__).resolve().parents[1] / "sample_data" / "gtfs"


class RecordingRenderer:
    """Renderer that keeps what it was asked to draw."""

    def __init__(self) -> None:
        self.markers: list[tuple[Any, str]] = []
        self.points: list[tuple[Any, dict]] = []
        self.lines: list[tuple[Any, dict]] = []
        self.legend: list[tuple[str, str]] | None = None
        self.built = False

    def add_markers(self, points, *, popup_field):
        self.markers.append((points, popup_field))

    def add_points(self, points, **style):
        self.points.append((points, style))

    def add_lines(self, lines, **style):
        self.lines.append((lines, style))

    def add_legend(self, entries):
        self.legend = list(entries)

    def build(self):
        self.built = True
        return self


def _toy_tables() -> dict[str, pd.DataFrame]:
    """Small two-route feed; R3 has no trips."""
    return {
        "agency": pd.DataFrame(
            {
                "agency_id": ["TT"],
                "agency_name": ["Toy Transit"],
                "agency_url": ["https://example.org"],
                "agency_timezone": ["America/New_York"],
            }
        ),
        "stops": pd.DataFrame(
            {
                "stop_id": ["S1", "S2", "S3"],
                "stop_name": ["Main St", "Fifth Ave", "Harbor"],
                "stop_lat": ["40.0", "40.01", "40.02"],
                "stop_lon": ["-73.0", "-73.01", "-73.03"],
            }
        ),
        "routes": pd.DataFrame(
            {
                "route_id": ["R1", "R2", "R3"],
                "agency_id": ["TT", "TT", "TT"],
                "route_short_name": ["1", "2", "3"],
                "route_long_name": ["Downtown Express", "Harbor Shuttle", "Ghost Route"],
                "route_type": ["3", "3", "3"],
                "route_color": ["0000FF", "FF0000", "00FF00"],
            }
        ),
        "trips": pd.DataFrame(
            {
                "route_id": ["R1", "R2"],
                "service_id": ["WKD", "WKD"],
                "trip_id": ["T1", "T9"],
                "shape_id": ["SH1", "SH2"],
            }
        ),
        "stop_times": pd.DataFrame(
            {
                "trip_id": ["T1", "T9", "T9"],
                "stop_id": ["S1", "S2", "S3"],
                "stop_sequence": ["1", "1", "2"],
            }
        ),
        "shapes": pd.DataFrame(
            {
                "shape_id": ["SH1", "SH1", "SH2", "SH2"],
                "shape_pt_lat": ["40.01", "40.0", "40.01", "40.02"],
                "shape_pt_lon": ["-73.01", "-73.0", "-73.01", "-73.03"],
                "shape_pt_sequence": ["2", "1", "1", "2"],
            }
        ),
    }


@pytest.fixture
def toy_tables() -> dict[str, pd.DataFrame]:
    return _toy_tables()


@pytest.fixture
def make_feed() -> Callable[..., GtfsFeed]:
    """Build the toy feed, replacing or appending rows per table.

    ``make_feed(trips=df)`` replaces the trips table; ``make_feed(extra_trips=df)``
    appends rows to it; ``make_feed(shapes=None)`` drops the table.
    """

    def _make(**changes: Any) -> GtfsFeed:
        tables: dict[str, Any] = _toy_tables()
        for key, value in changes.items():
            if key.startswith("extra_"):
                name = key.removeprefix("extra_")
                tables[name] = pd.concat([tables[name], value], ignore_index=True)
            else:
                tables[key] = value
        return GtfsFeed(**tables)

    return _make


@pytest.fixture
def toy_feed(make_feed) -> GtfsFeed:
    return make_feed()


@pytest.fixture
def recorder() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def sample_gtfs_dir() -> Path:
    return SAMPLE_GTFS_DIR
