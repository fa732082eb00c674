from unittest.mock import patch

import dash
import pytest
from shapely.geometry import Polygon

from cluster_map.controller import MapController, MapState, TransformChanged
from cluster_map.controls import ControlSurface
from cluster_map.dashboard import (
    GRAPH_ID,
    WIDTH_STORE_ID,
    create_cluster_map_app,
    route_map_event,
    transform_from_relayout,
)
from cluster_map.figure import build_figure, export_snapshot_html
from cluster_map.viewport import IDENTITY


@pytest.fixture
def controller(us_records):
    controller = MapController(width=960)
    kansas = Polygon([(-102.05, 40.0), (-94.6, 40.0), (-94.6, 37.0), (-102.05, 37.0)])
    controller.load(us_records, [kansas])
    return controller


class TestBuildFigure:
    """Plotly traces and layout for a render frame."""

    def test_traces(self, controller):
        fig = build_figure(controller.frame)

        basemap, clusters = fig.data
        assert basemap.fill == 'toself'
        assert list(clusters.ids) == [m.key for m in controller.frame.marks]
        assert list(clusters.marker.size) == pytest.approx([2 * m.radius for m in controller.frame.marks])
        assert list(clusters.text) == [m.label for m in controller.frame.marks]

    def test_identity_shows_whole_map(self, controller):
        fig = build_figure(controller.frame)

        assert list(fig.layout.xaxis.range) == [0, 960]
        # Reversed y axis: screen y grows downwards
        assert list(fig.layout.yaxis.range) == [595, 0]
        assert (fig.layout.width, fig.layout.height) == (960, 595)

    def test_marks_follow_the_transform(self, controller):
        target = controller.state.zoom.zoom(IDENTITY, 2.0, (480.0, 297.5))
        frame = controller.dispatch(TransformChanged(target))

        fig = build_figure(frame)

        clusters = fig.data[-1]
        for mark, x, y in zip(frame.marks, clusters.x, clusters.y):
            assert (x, y) == pytest.approx(frame.state.transform.invert(mark.x, mark.y))
        assert list(fig.layout.xaxis.range) == pytest.approx([240.0, 720.0])

    def test_empty_frame(self):
        fig = build_figure(MapController().frame)

        assert len(fig.data) == 1
        assert len(fig.data[0].x) == 0

    def test_export_snapshot_html(self, controller, tmp_path):
        output = tmp_path / 'snapshots' / 'map.html'

        path = export_snapshot_html(controller.frame, str(output))

        assert path == str(output)
        assert 'plotly' in output.read_text(encoding='utf-8').lower()


class TestTransformFromRelayout:
    """Plotly relayout events become viewport transforms."""

    def test_no_axis_change(self):
        assert transform_from_relayout(None, MapState()) is None
        assert transform_from_relayout({'autosize': True}, MapState()) is None

    def test_autorange_resets(self):
        state = MapState(transform=IDENTITY.scale_to(3.0, (100.0, 100.0)))

        assert transform_from_relayout({'xaxis.autorange': True, 'yaxis.autorange': True}, state) == IDENTITY

    def test_zoomed_window(self):
        relayout = {
            'xaxis.range[0]': 240.0, 'xaxis.range[1]': 720.0,
            'yaxis.range[0]': 446.25, 'yaxis.range[1]': 148.75,
        }

        transform = transform_from_relayout(relayout, MapState())

        assert transform.scale == pytest.approx(2.0)
        assert transform.translate_x == pytest.approx(-480.0)
        assert transform.translate_y == pytest.approx(-297.5)

    def test_single_axis_keeps_other_center(self):
        transform = transform_from_relayout({'xaxis.range': [240.0, 720.0]}, MapState())

        assert transform.scale == pytest.approx(2.0)
        assert transform.translate_y == pytest.approx(-297.5)

    def test_pan_past_edge_is_constrained(self):
        relayout = {'xaxis.range': [-300.0, 660.0], 'yaxis.range': [595.0, 0.0]}

        assert transform_from_relayout(relayout, MapState()) == IDENTITY


class TestDashboard:
    """Dash layout wiring."""

    def test_layout(self, controller):
        app = create_cluster_map_app(controller)

        assert isinstance(app, dash.Dash)
        assert app.layout[GRAPH_ID].figure is not None
        assert app.layout['grid_size'].value == 40
        assert app.layout['scale_multiplier-value'].children == '1.2×'
        assert app.layout['min_sum-value'].children == '1+'


class TestRouteMapEvent:
    """Callback triggers routed to controller events."""

    @pytest.fixture
    def controls(self, controller):
        return controller.controls

    @pytest.fixture
    def save_settings(self):
        with patch('cluster_map.dashboard.save_settings') as save_settings:
            yield save_settings

    def _sliders(self, controller, **overrides):
        values = controller.state.control_values()
        values.update(overrides)
        return values

    def test_slider_change(self, controller, controls, save_settings):
        sliders = self._sliders(controller, grid_size=64)

        changed = route_map_event(controller, controls, 'grid_size', sliders, None, 960, 'data/datall.csv')

        assert changed
        assert controller.state.grid_size == 64
        save_settings.assert_called_once_with(64, 1.2, 1, 'data/datall.csv')

    def test_repeated_slider_value_is_not_saved(self, controller, controls, save_settings):
        sliders = self._sliders(controller)

        assert not route_map_event(controller, controls, 'scale_multiplier', sliders, None, 960)
        save_settings.assert_not_called()

    def test_invalid_slider_value_keeps_state(self, controller, controls, save_settings):
        before = controller.state
        sliders = self._sliders(controller, min_sum='lots')

        assert not route_map_event(controller, controls, 'min_sum', sliders, None, 960)
        assert controller.state is before
        save_settings.assert_not_called()

    def test_relayout_zoom(self, controller, controls):
        relayout = {'xaxis.range': [240.0, 720.0], 'yaxis.range': [446.25, 148.75]}

        assert route_map_event(controller, controls, GRAPH_ID, self._sliders(controller), relayout, 960)
        assert controller.state.transform.scale == pytest.approx(2.0)

    def test_relayout_without_axes(self, controller, controls):
        before = controller.state

        assert not route_map_event(controller, controls, GRAPH_ID, self._sliders(controller), {'autosize': True}, 960)
        assert controller.state is before

    def test_width_store(self, controller, controls):
        assert route_map_event(controller, controls, WIDTH_STORE_ID, self._sliders(controller), None, 1000)
        assert (controller.state.width, controller.state.height) == (1000, 620)

    def test_missing_width_is_ignored(self, controller, controls):
        assert not route_map_event(controller, controls, WIDTH_STORE_ID, self._sliders(controller), None, None)
        assert controller.state.width == 960

    def test_unknown_trigger(self, controller):
        assert not route_map_event(controller, ControlSurface(), None, self._sliders(controller), None, 960)
