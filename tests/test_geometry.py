from __future__ import annotations

import itertools
import logging

import pandas as pd
import pytest
from shapely.geometry import LineString

from gtfs_maps.geometry import ShapelySimplifier, build_shape_lines, simplify_lines


def _points(rows: list[tuple[str, float, float, int]]) -> pd.DataFrame:
    return pd.DataFrame(
        rows, columns=["shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence"]
    )


SHAPE_ROWS = [
    ("A", 40.00, -73.00, 1),
    ("A", 40.01, -73.02, 2),
    ("A", 40.03, -73.01, 3),
    ("A", 40.04, -73.05, 10),
]


def test_points_are_joined_in_sequence_order() -> None:
    shuffled = _points([SHAPE_ROWS[3], SHAPE_ROWS[0], SHAPE_ROWS[2], SHAPE_ROWS[1]])

    lines = build_shape_lines(shuffled)

    assert list(lines["shape_id"]) == ["A"]
    # (lon, lat) pairs, and sequence 10 sorts after 3 numerically
    assert list(lines.geometry.iloc[0].coords) == [
        (-73.00, 40.00),
        (-73.02, 40.01),
        (-73.01, 40.03),
        (-73.05, 40.04),
    ]
    assert lines.crs.to_epsg() == 4326


def test_line_is_independent_of_input_order() -> None:
    expected = list(build_shape_lines(_points(SHAPE_ROWS)).geometry.iloc[0].coords)

    for permutation in itertools.permutations(SHAPE_ROWS):
        lines = build_shape_lines(_points(list(permutation)))
        assert list(lines.geometry.iloc[0].coords) == expected


def test_one_line_per_shape_id() -> None:
    rows = SHAPE_ROWS + [("B", 41.0, -74.0, 1), ("B", 41.1, -74.1, 2)]

    lines = build_shape_lines(_points(rows))

    assert list(lines["shape_id"]) == ["A", "B"]
    assert len(lines.geometry.iloc[1].coords) == 2


def test_single_point_shape_is_skipped(caplog) -> None:
    rows = [("A", 40.0, -73.0, 1), ("B", 41.0, -74.0, 1), ("B", 41.1, -74.1, 2)]

    with caplog.at_level(logging.WARNING):
        lines = build_shape_lines(_points(rows))

    assert list(lines["shape_id"]) == ["B"]
    assert "Shape ID A skipped" in caplog.text


def test_empty_points_give_empty_lines() -> None:
    lines = build_shape_lines(_points([]))
    assert lines.empty
    assert "shape_id" in lines.columns


def test_simplify_drops_collinear_vertex_and_keeps_endpoints() -> None:
    rows = [("A", 40.0, -73.0, 1), ("A", 40.000001, -73.0, 2), ("A", 40.1, -73.0, 3)]
    lines = build_shape_lines(_points(rows))

    simplified = simplify_lines(lines, ShapelySimplifier(), tolerance=0.00001)

    assert list(simplified.geometry.iloc[0].coords) == [(-73.0, 40.0), (-73.0, 40.1)]
    # Input is left untouched
    assert len(lines.geometry.iloc[0].coords) == 3


def test_simplify_keeps_vertices_beyond_tolerance() -> None:
    lines = build_shape_lines(_points(SHAPE_ROWS))

    simplified = simplify_lines(lines, ShapelySimplifier(), tolerance=0.00001)

    assert simplified.geometry.iloc[0].equals(lines.geometry.iloc[0])


def test_zero_tolerance_skips_simplifier() -> None:
    class FailingSimplifier:
        def simplify(self, line, tolerance):
            raise AssertionError("should not be called")

    lines = build_shape_lines(_points(SHAPE_ROWS))
    assert simplify_lines(lines, FailingSimplifier(), tolerance=0).equals(lines)


@pytest.mark.parametrize("preserve_topology", [True, False])
def test_shapely_simplifier_preserves_endpoints(preserve_topology) -> None:
    line = LineString([(0, 0), (1, 0.5), (2, 0.000001), (3, 0)])

    simplified = ShapelySimplifier(preserve_topology).simplify(line, 0.01)

    assert simplified.coords[0] == (0, 0)
    assert simplified.coords[-1] == (3, 0)
