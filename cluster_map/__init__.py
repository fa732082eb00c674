"""
Customer cluster map.

Aggregates geocoded customer records into screen-space grid clusters over a
US map, re-clustering on every pan/zoom, control change and resize.

Main entry points:
- aggregate: grid aggregation of records for a viewport transform
- ClusterRenderer: proportional-symbol marks with keyed reconciliation
- MapController: owns the current map snapshot and runs render passes
- create_cluster_map_app: Dash application around a controller
"""

from .aggregator import aggregate, aggregate_cells, filter_clusters
from .controller import MapController, MapState, Resized, TransformChanged, reduce
from .controls import ControlChanged, ControlSurface
from .projection import AlbersUsaProjector
from .renderer import ClusterRenderer, SqrtScale, reconcile
from .viewport import IDENTITY, ViewportTransform, ZoomBehavior

__all__ = [
    'aggregate',
    'aggregate_cells',
    'filter_clusters',
    'MapController',
    'MapState',
    'Resized',
    'TransformChanged',
    'reduce',
    'ControlChanged',
    'ControlSurface',
    'AlbersUsaProjector',
    'ClusterRenderer',
    'SqrtScale',
    'reconcile',
    'IDENTITY',
    'ViewportTransform',
    'ZoomBehavior',
]
