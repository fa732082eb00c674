"""
Static state-boundary layer.

Polygon rings are projected once per viewport configuration into planar
coordinates. Pan and zoom never touch this layer: the figure's axis ranges
move it together with the clusters, which are re-aggregated in screen space
instead.
"""

from typing import Iterable, List, Optional

import numpy as np
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from .utils.logging import Logger

logger = Logger()


def _polygon_rings(geometry: BaseGeometry):
    if isinstance(geometry, Polygon):
        yield geometry.exterior
        yield from geometry.interiors
    elif isinstance(geometry, MultiPolygon):
        for polygon in geometry.geoms:
            yield from _polygon_rings(polygon)
    elif hasattr(geometry, 'geoms'):
        for part in geometry.geoms:
            yield from _polygon_rings(part)


class BaseMapLayer:
    """Planar paths for a collection of polygon geometries"""

    def __init__(self, geometries: Optional[Iterable[BaseGeometry]] = None):
        # Accepts a GeoDataFrame, a GeoSeries or any iterable of shapely geometries
        if geometries is not None and hasattr(geometries, 'geometry'):
            geometries = geometries.geometry
        self.geometries: List[BaseGeometry] = [
            g for g in (geometries if geometries is not None else []) if g is not None and not g.is_empty
        ]
        self.xs: List[Optional[float]] = []
        self.ys: List[Optional[float]] = []
        self.ring_count = 0

    def draw(self, projector) -> None:
        """(Re)project every ring; None separates rings and unprojectable gaps"""
        xs: List[Optional[float]] = []
        ys: List[Optional[float]] = []
        rings = 0

        for geometry in self.geometries:
            for ring in _polygon_rings(geometry):
                coords = np.asarray(ring.coords, dtype=float)
                if coords.shape[0] < 2:
                    continue
                projected = projector.project_many(coords[:, 0], coords[:, 1])
                drawn = False
                for x, y in projected:
                    if np.isnan(x) or np.isnan(y):
                        if drawn and xs[-1] is not None:
                            xs.append(None)
                            ys.append(None)
                        continue
                    xs.append(float(x))
                    ys.append(float(y))
                    drawn = True
                if drawn:
                    rings += 1
                    if xs[-1] is not None:
                        xs.append(None)
                        ys.append(None)

        self.xs = xs
        self.ys = ys
        self.ring_count = rings
        logger.info(f"Base map drawn: {rings} rings from {len(self.geometries)} geometries")

    @property
    def is_empty(self) -> bool:
        return self.ring_count == 0
