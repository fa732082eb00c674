from dataclasses import dataclass


def grid_key(cx: int, cy: int) -> str:
    """Render identity of a grid cell"""
    return f"{cx},{cy}"


@dataclass
class GridCell:
    """Accumulator for one screen-space grid cell during a single aggregation pass"""
    key: str
    cx: int
    cy: int
    sum: float = 0.0
    count: int = 0
    sx: float = 0.0
    sy: float = 0.0

    def add(self, x: float, y: float, value: float) -> None:
        self.sum += value
        self.count += 1
        self.sx += x
        self.sy += y

    def to_cluster(self) -> 'Cluster':
        # count is at least 1: cells are only created on first point insertion
        count = max(1, self.count)
        return Cluster(
            key=self.key,
            x=self.sx / count,
            y=self.sy / count,
            sum=self.sum,
            count=self.count,
        )


@dataclass(frozen=True)
class Cluster:
    """Aggregated group of points sharing a grid cell (screen-space centroid)"""
    key: str
    x: float
    y: float
    sum: float
    count: int


@dataclass
class ClusterMark:
    """Retained visual mark for a cluster; mutated in place while its key persists"""
    key: str
    x: float
    y: float
    radius: float
    label: str
    font_size: float
