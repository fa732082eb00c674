"""
Cluster renderer: proportional-symbol marks with keyed reconciliation.

Circle area (not radius) scales linearly with a cluster's summed value, via a
square-root scale from [0, max_sum] onto [MIN_RADIUS, MAX_RADIUS] pixels. The
renderer retains one ClusterMark per grid key; each render pass reconciles
the new clusters against the retained marks by key:
    - update: key present before and now, mark mutated in place
    - create: key new in this pass
    - remove: key no longer present
applied in that order. Marks that survive keep their identity, so clusters
appear to grow, shrink and merge instead of flickering.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import Cluster, ClusterMark

MIN_RADIUS = 3.0
MAX_RADIUS = 26.0
MIN_FONT_SIZE = 9.0
MAX_FONT_SIZE = 18.0
FONT_SIZE_RATIO = 0.9


class SqrtScale:
    """Square-root scale, matching d3.scaleSqrt for a two-value domain and range"""

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        self.domain = domain
        self.range = range_

    @staticmethod
    def _sqrt(x: float) -> float:
        return math.copysign(math.sqrt(abs(x)), x)

    def __call__(self, value: float) -> float:
        d0, d1 = (self._sqrt(d) for d in self.domain)
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        t = (self._sqrt(value) - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)


def radius_scale(clusters: Sequence[Cluster]) -> SqrtScale:
    max_sum = max((c.sum for c in clusters), default=0)
    if not max_sum > 0:
        max_sum = 1
    return SqrtScale((0, max_sum), (MIN_RADIUS, MAX_RADIUS))


def font_size_for(base_radius: float) -> float:
    """Label size follows the unmultiplied radius, bounded to [9, 18]"""
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, base_radius * FONT_SIZE_RATIO))


def format_sum(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


@dataclass
class Reconciliation:
    update: List[Cluster] = field(default_factory=list)
    create: List[Cluster] = field(default_factory=list)
    remove: List[str] = field(default_factory=list)


def reconcile(previous_keys: Iterable[str], clusters: Iterable[Cluster]) -> Reconciliation:
    """Partition a new cluster list against the previously rendered keys"""
    previous = set(previous_keys)
    plan = Reconciliation()
    seen = set()
    for cluster in clusters:
        seen.add(cluster.key)
        if cluster.key in previous:
            plan.update.append(cluster)
        else:
            plan.create.append(cluster)
    plan.remove = [key for key in previous if key not in seen]
    return plan


class ClusterRenderer:
    """Retained set of cluster marks, reconciled on every render pass"""

    def __init__(self):
        self.marks: Dict[str, ClusterMark] = {}
        self.last_reconciliation = Reconciliation()

    def render(self, clusters: Sequence[Cluster], scale_multiplier: float) -> None:
        scale = radius_scale(clusters)
        plan = reconcile(self.marks.keys(), clusters)

        for cluster in plan.update:
            self._apply(self.marks[cluster.key], cluster, scale, scale_multiplier)
        for cluster in plan.create:
            mark = ClusterMark(key=cluster.key, x=0.0, y=0.0, radius=0.0, label='', font_size=MIN_FONT_SIZE)
            self._apply(mark, cluster, scale, scale_multiplier)
            self.marks[cluster.key] = mark
        for key in plan.remove:
            del self.marks[key]

        self.last_reconciliation = plan

    @staticmethod
    def _apply(mark: ClusterMark, cluster: Cluster, scale: SqrtScale, scale_multiplier: float) -> None:
        base_radius = scale(cluster.sum)
        mark.x = cluster.x
        mark.y = cluster.y
        # Negative sums fall below the range start; a circle cannot have a negative radius
        mark.radius = max(0.0, base_radius * scale_multiplier)
        mark.label = format_sum(cluster.sum)
        mark.font_size = font_size_for(base_radius)

    def visible_marks(self) -> List[ClusterMark]:
        """Marks in a stable (key) order for drawing"""
        return [self.marks[key] for key in sorted(self.marks)]
