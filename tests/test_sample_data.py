from __future__ import annotations

import pytest

from gtfs_maps.feed import GtfsFeed
from gtfs_maps.selectors import select_agency_routes, select_route_shapes, select_route_stops


def test_sample_data_exists(sample_gtfs_dir) -> None:
    """Verify that the sample data directory and critical files exist."""
    assert sample_gtfs_dir.is_dir(), "Sample data directory missing"
    for name in ("agency.txt", "stops.txt", "routes.txt", "trips.txt", "stop_times.txt"):
        assert (sample_gtfs_dir / name).exists(), f"{name} missing"


def test_load_sample_feed(sample_gtfs_dir) -> None:
    feed = GtfsFeed.from_folder(sample_gtfs_dir)

    assert feed.table_names == ["agency", "routes", "trips", "stop_times", "stops", "shapes"]
    assert feed.agency.iloc[0]["agency_name"] == "Toy Transit"
    assert len(feed.stops) == 3
    assert "S1" in feed.stops["stop_id"].values
    assert feed.routes.iloc[0]["route_long_name"] == "Downtown Express"


def test_sample_route_has_outbound_and_inbound_shapes(sample_gtfs_dir) -> None:
    feed = GtfsFeed.from_folder(sample_gtfs_dir)

    selection = select_route_shapes(feed, "R1")

    assert sorted(selection.lines["shape_id"]) == ["SH1", "SH1R"]
    outbound = selection.lines.set_index("shape_id").loc["SH1", "geometry"]
    assert list(outbound.coords) == [
        pytest.approx((-73.0, 40.0)),
        pytest.approx((-73.01, 40.01)),
    ]
    assert sorted(selection.stops["stop_id"]) == ["S1", "S2"]


def test_sample_route_stops_are_distinct(sample_gtfs_dir) -> None:
    feed = GtfsFeed.from_folder(sample_gtfs_dir)

    stops = select_route_stops(feed, "R1")

    # Three trips visit S1 and S2; each stop is reported once
    assert sorted(stops["stop_id"]) == ["S1", "S2"]


def test_sample_agency_covers_both_routes(sample_gtfs_dir) -> None:
    feed = GtfsFeed.from_folder(sample_gtfs_dir)

    selection = select_agency_routes(feed, "TT")

    assert sorted(set(selection.lines["route_id"])) == ["R1", "R2"]
    assert len(selection.lines) == 3
    assert sorted(selection.stops["stop_id"]) == ["S1", "S2", "S3"]
