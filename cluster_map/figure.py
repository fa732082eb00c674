"""
Plotly figure for one render frame.

Axes are in planar base-map units with the y axis reversed (screen y grows
downwards). The axis ranges are the viewport transform's visible window, so
the base map follows pan/zoom without being re-projected. Cluster marks are
computed in screen space; they are placed at the planar inverse of their
screen centroid and sized in pixels, so circles never distort under zoom.
"""

import os

import plotly.graph_objects as go

from .controller import Frame

BASEMAP_FILL = '#eef1f5'
BASEMAP_LINE = '#9aa5b1'
CLUSTER_FILL = 'rgba(31, 119, 180, 0.55)'
CLUSTER_LINE = '#1f4e79'
# Plotly transition length for keyed (ids-matched) marks
TRANSITION_MS = 150


def build_figure(frame: Frame) -> go.Figure:
    state = frame.state
    x0, x1, y0, y1 = state.zoom.visible_extent(state.transform)

    fig = go.Figure()

    basemap = frame.basemap
    if basemap is not None and not basemap.is_empty:
        fig.add_trace(go.Scatter(
            x=basemap.xs,
            y=basemap.ys,
            mode='lines',
            fill='toself',
            fillcolor=BASEMAP_FILL,
            line={'color': BASEMAP_LINE, 'width': 0.6},
            hoverinfo='skip',
            name='states',
            showlegend=False,
        ))

    marks = frame.marks
    planar = [state.transform.invert(m.x, m.y) for m in marks]
    counts = {c.key: c.count for c in frame.clusters}
    fig.add_trace(go.Scatter(
        ids=[m.key for m in marks],
        x=[p[0] for p in planar],
        y=[p[1] for p in planar],
        mode='markers+text',
        text=[m.label for m in marks],
        textposition='middle center',
        textfont={'size': [m.font_size for m in marks], 'color': '#10243a'},
        marker={
            'size': [2 * m.radius for m in marks],
            'sizemode': 'diameter',
            'color': CLUSTER_FILL,
            'line': {'color': CLUSTER_LINE, 'width': 1},
        },
        customdata=[[counts.get(m.key, 0)] for m in marks],
        hovertemplate='Sum: %{text}<br>Locations: %{customdata[0]}<extra></extra>',
        name='clusters',
        showlegend=False,
    ))

    fig.update_layout(
        width=state.width,
        height=state.height,
        margin={'l': 0, 'r': 0, 't': 0, 'b': 0},
        plot_bgcolor='white',
        paper_bgcolor='white',
        dragmode='pan',
        transition={'duration': TRANSITION_MS, 'easing': 'cubic-in-out'},
        xaxis={'range': [x0, x1], 'visible': False, 'constrain': 'domain'},
        yaxis={'range': [y1, y0], 'visible': False, 'scaleanchor': 'x', 'scaleratio': 1},
    )
    return fig


def export_snapshot_html(frame: Frame, output_path: str) -> str:
    """Write the frame as a standalone HTML page and return its path"""
    output_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(output_dir, exist_ok=True)
    build_figure(frame).write_html(output_path, include_plotlyjs='cdn', config={'scrollZoom': True})
    return output_path
