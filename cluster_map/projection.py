"""
Coordinate projection for the US customer map.

Composite Albers equal-area projection (lower 48 states with Alaska and Hawaii
insets), laid out the same way as d3's geoAlbersUsa so that maps drawn here
line up with the usual us-atlas geometry. Each sub-projection is a pyproj
transformer on a unit sphere; screen placement (scale, translate, inset boxes)
is applied on top.

Usage:
    projector = AlbersUsaProjector(960, 595)
    projector.project(-100.0, 40.0)       # -> (x, y) or None
    projector.configure(1200, 744)        # after a resize
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from pyproj import Transformer

# Scale of the lower 48 relative to the smaller viewport dimension
SCALE_FACTOR = 1.15

_EPSILON = 1e-6
_SPHERE = "+proj=longlat +R=1 +no_defs"


@dataclass(frozen=True)
class Inset:
    """One sub-projection of the composite and its placement on screen.

    Offsets and clip bounds are expressed in units of the composite scale,
    relative to the composite translate point.
    """
    name: str
    lon_0: float
    center: Tuple[float, float]  # (longitude offset from lon_0, latitude)
    parallels: Tuple[float, float]
    scale_ratio: float
    offset: Tuple[float, float]
    clip: Tuple[float, float, float, float]  # x0, y0, x1, y1
    clip_padding: float = 0.0

    def proj_string(self) -> str:
        return (
            f"+proj=aea +lat_1={self.parallels[0]} +lat_2={self.parallels[1]} "
            f"+lat_0={self.center[1]} +lon_0={self.lon_0} +R=1 +units=m +no_defs"
        )


INSETS = (
    Inset("lower48", lon_0=-96.0, center=(-0.6, 38.7), parallels=(29.5, 45.5),
          scale_ratio=1.0, offset=(0.0, 0.0), clip=(-0.455, -0.238, 0.455, 0.238)),
    Inset("alaska", lon_0=-154.0, center=(-2.0, 58.5), parallels=(55.0, 65.0),
          scale_ratio=0.35, offset=(-0.307, 0.201), clip=(-0.425, 0.120, -0.214, 0.234),
          clip_padding=_EPSILON),
    Inset("hawaii", lon_0=-157.0, center=(-3.0, 19.9), parallels=(8.0, 18.0),
          scale_ratio=1.0, offset=(-0.205, 0.212), clip=(-0.214, 0.166, -0.115, 0.234),
          clip_padding=_EPSILON),
)


class _PlacedInset:
    """An inset bound to a pyproj transformer, placed for the current viewport"""

    def __init__(self, inset: Inset):
        self.inset = inset
        self.transformer = Transformer.from_crs(_SPHERE, inset.proj_string(), always_xy=True)
        center_lon = inset.lon_0 + inset.center[0]
        self.origin = self.transformer.transform(center_lon, inset.center[1])
        self.k = 1.0
        self.tx = 0.0
        self.ty = 0.0
        self.bounds = (0.0, 0.0, 0.0, 0.0)

    def place(self, scale: float, translate: Tuple[float, float]) -> None:
        x, y = translate
        inset = self.inset
        self.k = scale * inset.scale_ratio
        self.tx = x + inset.offset[0] * scale
        self.ty = y + inset.offset[1] * scale
        pad = inset.clip_padding
        x0, y0, x1, y1 = inset.clip
        self.bounds = (x + x0 * scale + pad, y + y0 * scale + pad,
                       x + x1 * scale - pad, y + y1 * scale - pad)

    def to_screen(self, px, py):
        # Projected y grows northwards; screen y grows downwards
        sx = self.tx + self.k * (px - self.origin[0])
        sy = self.ty - self.k * (py - self.origin[1])
        return sx, sy

    def contains(self, sx, sy):
        x0, y0, x1, y1 = self.bounds
        return (sx >= x0) & (sx <= x1) & (sy >= y0) & (sy <= y1)


class AlbersUsaProjector:
    """Maps (longitude, latitude) to planar base-layer coordinates.

    Points outside every inset's clip box are unprojectable and come back as
    None; callers exclude them.
    """

    def __init__(self, width: float, height: float):
        self._insets = [_PlacedInset(inset) for inset in INSETS]
        self._cache: Dict[Tuple[float, float], Optional[Tuple[float, float]]] = {}
        self.width = 0.0
        self.height = 0.0
        self.scale = 0.0
        self.translate = (0.0, 0.0)
        self.configure(width, height)

    def configure(self, width: float, height: float) -> None:
        """Recenter on the viewport and rescale to its smaller side"""
        self.width = float(width)
        self.height = float(height)
        self.translate = (self.width / 2, self.height / 2)
        self.scale = min(self.width, self.height) * SCALE_FACTOR
        for placed in self._insets:
            placed.place(self.scale, self.translate)
        self._cache.clear()

    def project(self, lon: float, lat: float) -> Optional[Tuple[float, float]]:
        key = (lon, lat)
        if key in self._cache:
            return self._cache[key]

        result = None
        for placed in self._insets:
            px, py = placed.transformer.transform(lon, lat)
            if not (math.isfinite(px) and math.isfinite(py)):
                continue
            sx, sy = placed.to_screen(px, py)
            if placed.contains(sx, sy):
                result = (float(sx), float(sy))
                break

        self._cache[key] = result
        return result

    def project_many(self, lons, lats) -> np.ndarray:
        """Vectorised project(); returns an (n, 2) array with NaN rows for unprojectable points"""
        lons = np.asarray(lons, dtype=float)
        lats = np.asarray(lats, dtype=float)
        out = np.full((lons.shape[0], 2), np.nan)
        pending = np.ones(lons.shape[0], dtype=bool)

        for placed in self._insets:
            if not pending.any():
                break
            px, py = placed.transformer.transform(lons, lats)
            px = np.asarray(px, dtype=float)
            py = np.asarray(py, dtype=float)
            sx, sy = placed.to_screen(px, py)
            with np.errstate(invalid='ignore'):
                hit = pending & np.isfinite(sx) & np.isfinite(sy) & placed.contains(sx, sy)
            out[hit, 0] = sx[hit]
            out[hit, 1] = sy[hit]
            pending &= ~hit

        return out
