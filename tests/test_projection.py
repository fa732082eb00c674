import numpy as np
import pytest

from cluster_map.projection import SCALE_FACTOR, AlbersUsaProjector


@pytest.fixture
def projector():
    return AlbersUsaProjector(960, 595)


class TestAlbersUsaProjector:
    """Composite US projection and its viewport configuration."""

    def test_center_maps_to_viewport_middle(self, projector):
        # The lower-48 projection is centered on 96.6W 38.7N
        x, y = projector.project(-96.6, 38.7)

        assert x == pytest.approx(480.0)
        assert y == pytest.approx(297.5)

    def test_scale_follows_smaller_side(self, projector):
        assert projector.scale == pytest.approx(595 * SCALE_FACTOR)

    def test_configure_recenters(self, projector):
        projector.configure(1200, 744)

        x, y = projector.project(-96.6, 38.7)
        assert x == pytest.approx(600.0)
        assert y == pytest.approx(372.0)
        assert projector.scale == pytest.approx(744 * SCALE_FACTOR)

    def test_orientation(self, projector):
        denver = projector.project(-104.99, 39.74)
        new_york = projector.project(-73.99, 40.73)
        miami = projector.project(-80.19, 25.76)

        assert denver[0] < new_york[0]
        assert miami[1] > new_york[1]

    def test_points_inside_viewport(self, projector):
        for lon, lat in [(-100.0, 40.0), (-122.42, 37.77), (-70.0, 44.0), (-81.0, 26.0)]:
            x, y = projector.project(lon, lat)
            assert 0 <= x <= 960
            assert 0 <= y <= 595

    def test_insets_for_alaska_and_hawaii(self, projector):
        anchorage = projector.project(-149.90, 61.22)
        honolulu = projector.project(-157.86, 21.31)

        assert anchorage is not None
        assert honolulu is not None
        # Both insets sit in the lower-left corner
        for x, y in (anchorage, honolulu):
            assert x < 480
            assert y > 297.5

    def test_outside_the_map_is_unprojectable(self, projector):
        assert projector.project(-0.13, 51.51) is None
        assert projector.project(139.69, 35.69) is None
        assert projector.project(-58.38, -34.60) is None

    def test_idempotent(self, projector):
        first = projector.project(-87.63, 41.88)
        projector.configure(960, 595)
        second = projector.project(-87.63, 41.88)

        assert first == pytest.approx(second)

    def test_project_many_matches_project(self, projector):
        lons = [-104.99, -0.13, -157.86, -73.99]
        lats = [39.74, 51.51, 21.31, 40.73]

        projected = projector.project_many(lons, lats)

        assert projected.shape == (4, 2)
        assert np.isnan(projected[1]).all()
        for i in (0, 2, 3):
            expected = projector.project(lons[i], lats[i])
            assert projected[i] == pytest.approx(expected)
