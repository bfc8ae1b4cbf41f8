from __future__ import annotations

from unittest.mock import patch

import pytest

from gtfs_maps import cli

# Keep the CLI from reconfiguring the root logger during the test run
pytestmark = pytest.mark.usefixtures("no_logging_setup")


@pytest.fixture
def no_logging_setup():
    with patch("gtfs_maps.cli.setup_logging") as mock_setup:
        yield mock_setup


def test_route_shape_to_html(sample_gtfs_dir, tmp_path) -> None:
    out = tmp_path / "route.html"

    status = cli.main([str(sample_gtfs_dir), "route-shape", "R1", "-o", str(out)])

    assert status == 0
    html = out.read_text(encoding="utf-8")
    assert "Downtown Express" in html
    assert "Stops" in html


def test_agency_routes_to_png(sample_gtfs_dir, tmp_path) -> None:
    out = tmp_path / "maps" / "agency.png"

    status = cli.main([str(sample_gtfs_dir), "agency-routes", "TT", "--no-stops", "-o", str(out)])

    assert status == 0
    assert out.read_bytes().startswith(b"\x89PNG")


@pytest.mark.parametrize("kind, object_id", [("stop", "S3"), ("route-stops", "R2")])
def test_point_maps(sample_gtfs_dir, tmp_path, kind, object_id) -> None:
    out = tmp_path / f"{kind}.html"

    assert cli.main([str(sample_gtfs_dir), kind, object_id, "-o", str(out)]) == 0
    assert out.exists()


def test_unknown_stop_exits_with_error(sample_gtfs_dir, tmp_path) -> None:
    out = tmp_path / "missing.html"

    status = cli.main([str(sample_gtfs_dir), "stop", "ZZZ", "-o", str(out)])

    assert status == 1
    assert not out.exists()


def test_missing_folder_exits_with_error(tmp_path) -> None:
    assert cli.main([str(tmp_path / "nope"), "stop", "S1", "-o", str(tmp_path / "x.html")]) == 1


def test_negative_tolerance_rejected(sample_gtfs_dir) -> None:
    assert cli.main([str(sample_gtfs_dir), "route-shape", "R1", "--tolerance", "-1"]) == 2


def test_verbose_flag_reaches_logging_setup(sample_gtfs_dir, tmp_path, no_logging_setup) -> None:
    cli.main([str(sample_gtfs_dir), "stop", "S1", "-o", str(tmp_path / "s.html"), "-v"])
    no_logging_setup.assert_called_once_with(verbose=True)


def test_make_renderer_follows_extension(tmp_path) -> None:
    config = cli.MapConfig()
    assert isinstance(cli.make_renderer(tmp_path / "a.png", config, "t"), cli.MatplotlibRenderer)
    assert isinstance(cli.make_renderer(tmp_path / "a.html", config, "t"), cli.FoliumRenderer)
