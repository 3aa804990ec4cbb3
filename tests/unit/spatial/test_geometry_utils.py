"""Unit tests for representative points and the local snapping frame."""

import numpy as np
import pytest
from shapely.geometry import LineString, MultiLineString, MultiPoint, Point, Polygon

from proximity_join.models.enums import RepresentativePointMethod
from proximity_join.spatial.utils import (
    from_local_frame,
    representative_point,
    snap_to_line,
    to_local_frame,
    unwrap_longitudes,
    vertex_centroid,
    wrap_longitude,
)


@pytest.mark.parametrize(
    "lon,expected",
    [(0.0, 0.0), (190.0, -170.0), (-190.0, 170.0), (180.0, -180.0), (-180.0, -180.0)],
)
def test_wrap_longitude(lon, expected):
    assert wrap_longitude(lon) == pytest.approx(expected)


def test_vertex_centroid_excludes_closing_vertex():
    """The repeated closing vertex of a ring must not bias the mean."""
    square = Polygon([(0, 0), (3, 0), (3, 3), (0, 3)])

    assert vertex_centroid(square) == pytest.approx((1.5, 1.5))


def test_vertex_centroid_of_multipoint():
    assert vertex_centroid(MultiPoint([(0, 0), (2, 4)])) == pytest.approx((1.0, 2.0))


def test_representative_point_of_point_is_the_point():
    assert representative_point(Point(3, 4)) == (3.0, 4.0)


def test_representative_point_of_missing_geometry():
    assert representative_point(None) is None
    assert representative_point(Point()) is None


def test_centroid_and_center_of_mass_differ_for_uneven_vertices():
    """Unevenly spaced vertices pull the vertex mean; centre of mass follows length."""
    line = LineString([(0, 0), (1, 0), (10, 0)])

    centroid = representative_point(line, RepresentativePointMethod.CENTROID)
    center_of_mass = representative_point(line, RepresentativePointMethod.CENTER_OF_MASS)

    assert centroid == pytest.approx((11 / 3, 0.0))
    assert center_of_mass == pytest.approx((5.0, 0.0))


def test_representative_point_accepts_method_names():
    square = Polygon([(0, 0), (2, 0), (2, 2), (0, 2)])

    assert representative_point(square, "centroid") == pytest.approx((1.0, 1.0))
    assert representative_point(square, "center-of-mass") == pytest.approx((1.0, 1.0))


def test_local_frame_round_trip():
    origin = (10.0, 45.0)
    line = LineString([(10.5, 45.25), (11.0, 45.5)])

    local = to_local_frame(line, origin)
    x, y = local.coords[0]

    assert from_local_frame(x, y, origin) == pytest.approx((10.5, 45.25))


def test_local_frame_wraps_antimeridian():
    local = to_local_frame(LineString([(-179.9, 0.0), (-179.8, 0.0)]), (179.9, 0.0))

    assert [x for x, _ in local.coords] == pytest.approx([0.2, 0.3])


def test_local_frame_keeps_edges_across_opposite_meridian_whole():
    """An edge straddling lon0 + 180 must not pass through the origin."""
    local = to_local_frame(LineString([(29.0, 60.0), (31.0, 60.0)]), (-150.0, 60.0))

    xs = [x for x, _ in local.coords]
    assert xs == pytest.approx([179.0 * 0.5, 181.0 * 0.5])


def test_local_frame_turns_shift_by_full_circle():
    line = LineString([(29.0, 0.0), (31.0, 0.0)])

    local = to_local_frame(line, (-150.0, 0.0), turns=-1)

    assert [x for x, _ in local.coords] == pytest.approx([-181.0, -179.0])


def test_unwrap_longitudes_is_continuous():
    offsets = unwrap_longitudes(np.array([179.0, -179.0, -178.0]), 0.0)

    assert offsets == pytest.approx([179.0, 181.0, 182.0])


def test_snap_to_line_perpendicular_foot():
    line = LineString([(0.9, 0.9), (0.9, 1.1)])

    assert snap_to_line((1.0, 1.0), line) == pytest.approx((0.9, 1.0), abs=1e-9)


def test_snap_to_line_clamps_to_endpoint():
    line = LineString([(0.0, 0.0), (1.0, 0.0)])

    assert snap_to_line((2.0, 0.5), line) == pytest.approx((1.0, 0.0), abs=1e-9)


def test_snap_to_line_across_antimeridian():
    line = LineString([(-179.9, -1.0), (-179.9, 1.0)])

    lon, lat = snap_to_line((179.9, 0.0), line)

    assert lon == pytest.approx(-179.9)
    assert lat == pytest.approx(0.0, abs=1e-9)


def test_snap_to_line_across_opposite_meridian():
    """A line on the far side of the globe snaps onto the line, not beside the origin."""
    line = LineString([(29.0, 60.0), (31.0, 60.0)])

    lon, lat = snap_to_line((-150.0, 60.0), line)

    assert 28.999 <= lon <= 31.001
    assert lat == pytest.approx(60.0)


def test_snap_to_multiline_picks_nearest_part():
    line = MultiLineString([[(50.0, -1.0), (50.0, 1.0)], [(179.5, -1.0), (-179.5, 1.0)]])

    lon, lat = snap_to_line((-179.0, 0.5), line)

    assert abs(lon) > 179.0
