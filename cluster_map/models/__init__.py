"""
Models package for the customer cluster map.

This package contains the data models used by the clustering pipeline:
- CustomerRecord: One geocoded customer row from the input CSV
- GridCell: Per-pass accumulator for a screen-space grid cell
- Cluster: Aggregated cell (centroid, summed value, point count)
- ClusterMark: Retained visual mark drawn for a cluster
"""

from .customer_record import CustomerRecord
from .cluster import GridCell, Cluster, ClusterMark, grid_key

__all__ = [
    'CustomerRecord',
    'GridCell',
    'Cluster',
    'ClusterMark',
    'grid_key'
]
