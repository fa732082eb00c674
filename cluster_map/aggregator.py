"""
Screen-space grid aggregation of customer records.

Every pass starts from scratch: records are projected, moved through the
current viewport transform, and bucketed into square cells of cell_size screen
pixels. A cell's key is a pure function of floor(x / cell_size) and
floor(y / cell_size), so the same screen position always lands in the same
cell and keys can coincide across passes, which is what the renderer's keyed
reconciliation relies on for smooth transitions.

Usage:
    clusters = aggregate(records, projector, transform, cell_size=40, min_sum=1)
"""

import math
from typing import Dict, Iterable, List

from .models import Cluster, CustomerRecord, GridCell, grid_key
from .viewport import ViewportTransform

# Requested cell sizes below this are clamped up
MIN_CELL_SIZE = 2


def effective_cell_size(cell_size: float) -> float:
    return max(MIN_CELL_SIZE, cell_size)


def cell_coordinates(x: float, y: float, cell_size: float):
    """Integer grid coordinates (cx, cy) of a screen point"""
    size = effective_cell_size(cell_size)
    return math.floor(x / size), math.floor(y / size)


def aggregate_cells(records: Iterable[CustomerRecord], projector, transform: ViewportTransform,
                    cell_size: float) -> List[Cluster]:
    """Bucket records into grid cells and return one cluster per non-empty cell.

    Records the projector cannot place are skipped. No minimum-sum filtering
    is applied here.
    """
    size = effective_cell_size(cell_size)
    cells: Dict[str, GridCell] = {}

    for record in records:
        planar = projector.project(record.lon, record.lat)
        if planar is None:
            continue
        px, py = transform.apply(*planar)
        cx, cy = cell_coordinates(px, py, size)
        key = grid_key(cx, cy)
        cell = cells.get(key)
        if cell is None:
            cell = GridCell(key=key, cx=cx, cy=cy)
            cells[key] = cell
        cell.add(px, py, record.value)

    return [cell.to_cluster() for cell in cells.values()]


def filter_clusters(clusters: Iterable[Cluster], min_sum: float) -> List[Cluster]:
    """Keep clusters whose summed value reaches min_sum"""
    return [cluster for cluster in clusters if cluster.sum >= min_sum]


def aggregate(records: Iterable[CustomerRecord], projector, transform: ViewportTransform,
              cell_size: float, min_sum: float = 1) -> List[Cluster]:
    return filter_clusters(aggregate_cells(records, projector, transform, cell_size), min_sum)
