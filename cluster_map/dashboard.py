import dash
from dash import html, dcc, Input, Output, State, no_update

from cluster_map.config import save_settings
from cluster_map.controller import MapController, MapState, Resized, TransformChanged
from cluster_map.controls import ControlSurface
from cluster_map.figure import build_figure
from cluster_map.utils.logging import Logger
from cluster_map.viewport import IDENTITY

logger = Logger()

GRAPH_ID = 'cluster-map'
CONTAINER_ID = 'map-container'
WIDTH_STORE_ID = 'viewport-width'
RESIZE_POLL_ID = 'resize-poll'


def _axis_range(relayout_data, axis):
    if f'{axis}.range' in relayout_data:
        low, high = relayout_data[f'{axis}.range']
        return float(low), float(high)
    if f'{axis}.range[0]' in relayout_data and f'{axis}.range[1]' in relayout_data:
        return float(relayout_data[f'{axis}.range[0]']), float(relayout_data[f'{axis}.range[1]'])
    return None


def transform_from_relayout(relayout_data, state: MapState):
    """
    Translate plotly relayoutData into a viewport transform.

    Returns IDENTITY for an autorange reset (double click), None when the
    event carries no axis change (autosize, dragmode switch).
    """
    if not relayout_data:
        return None
    if relayout_data.get('xaxis.autorange') or relayout_data.get('yaxis.autorange'):
        return IDENTITY

    x_range = _axis_range(relayout_data, 'xaxis')
    y_range = _axis_range(relayout_data, 'yaxis')
    if x_range is None and y_range is None:
        return None

    zoom = state.zoom
    cx0, cx1, cy0, cy1 = zoom.visible_extent(state.transform)
    # A single reported axis keeps the other axis' center at the same scale
    if x_range is None:
        span = abs(y_range[1] - y_range[0]) * state.width / state.height
        mid = (cx0 + cx1) / 2
        x_range = (mid - span / 2, mid + span / 2)
    if y_range is None:
        span = abs(x_range[1] - x_range[0]) * state.height / state.width
        mid = (cy0 + cy1) / 2
        y_range = (mid - span / 2, mid + span / 2)

    return zoom.from_visible_extent(x_range[0], x_range[1], y_range[0], y_range[1])


def route_map_event(controller: MapController, controls: ControlSurface, trigger, slider_values,
                    relayout_data, width, data_csv: str = None) -> bool:
    """
    Dispatch the event behind one callback trigger.

    Returns False when the map is unchanged (no axis change, repeated slider
    value, unknown trigger, or rejected input); the controller state is then
    left as it was.
    """
    try:
        if trigger in slider_values:
            event = controls.change(trigger, slider_values[trigger])
            if controller.state.control_values()[event.name] == event.value:
                return False
            controller.dispatch(event)
            state = controller.state
            save_settings(state.grid_size, state.scale_multiplier, state.min_sum, data_csv)
            return True
        if trigger == GRAPH_ID:
            transform = transform_from_relayout(relayout_data, controller.state)
            if transform is None:
                return False
            controller.dispatch(TransformChanged(transform))
            return True
        if trigger == WIDTH_STORE_ID and width:
            controller.dispatch(Resized(int(width)))
            return True
    except (KeyError, ValueError) as e:
        logger.error(f"Ignoring map update from {trigger}: {e}")
        return False
    return False


def _control_row(spec, value, label):
    return html.Div([
        html.Label(spec.title, htmlFor=spec.name, style={'fontWeight': 'bold', 'marginRight': '8px'}),
        html.Span(label, id=f'{spec.name}-value', style={'color': '#555'}),
        dcc.Slider(
            id=spec.name,
            min=spec.minimum,
            max=spec.maximum,
            step=spec.step,
            value=value,
            marks=None,
            updatemode='drag',
            tooltip={'placement': 'bottom'},
        ),
    ], style={'flex': '1', 'minWidth': '220px', 'marginRight': '24px'})


def create_cluster_map_app(controller: MapController, controls: ControlSurface = None, data_csv: str = None):
    controls = controls or controller.controls
    app = dash.Dash(__name__)
    app.title = "Customer Cluster Map"

    values = controller.state.control_values()
    labels = controls.labels(values)

    app.layout = html.Div([
        html.H1("New Customer Records by Location", style={
            'color': '#333',
            'borderBottom': '1px solid #ddd',
            'paddingBottom': '10px',
            'marginBottom': '20px',
            'fontFamily': 'Arial, sans-serif'
        }),
        html.Div(
            [_control_row(spec, values[spec.name], labels[spec.name]) for spec in controls],
            style={'display': 'flex', 'flexWrap': 'wrap', 'marginBottom': '16px', 'fontFamily': 'Arial, sans-serif'}
        ),
        html.Div(
            dcc.Graph(
                id=GRAPH_ID,
                figure=build_figure(controller.frame),
                config={'scrollZoom': True, 'displayModeBar': False, 'doubleClick': 'autosize'},
            ),
            id=CONTAINER_ID,
            style={'width': '100%'}
        ),
        dcc.Store(id=WIDTH_STORE_ID, data=controller.state.width),
        dcc.Interval(id=RESIZE_POLL_ID, interval=1000),
    ], style={'padding': '20px'})

    # Window resizes are only visible in the browser; report the container width when it changes
    app.clientside_callback(
        """
        function(n, currentWidth) {
            var el = document.getElementById('%s');
            if (!el || !el.clientWidth || el.clientWidth === currentWidth) {
                return window.dash_clientside.no_update;
            }
            return el.clientWidth;
        }
        """ % CONTAINER_ID,
        Output(WIDTH_STORE_ID, 'data'),
        Input(RESIZE_POLL_ID, 'n_intervals'),
        State(WIDTH_STORE_ID, 'data'),
    )

    names = [spec.name for spec in controls]

    @app.callback(
        Output(GRAPH_ID, 'figure'),
        *[Output(f'{name}-value', 'children') for name in names],
        *[Input(name, 'value') for name in names],
        Input(GRAPH_ID, 'relayoutData'),
        Input(WIDTH_STORE_ID, 'data'),
        prevent_initial_call=True,
    )
    def update_map(*args):
        slider_values = dict(zip(names, args[:len(names)]))
        relayout_data, width = args[len(names):]
        changed = route_map_event(controller, controls, dash.ctx.triggered_id, slider_values,
                                  relayout_data, width, data_csv)
        if not changed:
            return (no_update,) * (len(names) + 1)

        current = controls.labels(controller.state.control_values())
        return (build_figure(controller.frame), *[current[name] for name in names])

    return app
