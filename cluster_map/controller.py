"""
Map controller: single owner of the current map snapshot.

Every input (zoom tick, control change, resize) becomes an event. The pure
reducer turns (state, event) into the next MapState; the controller then
replaces its snapshot wholesale and runs one synchronous aggregate + render
pass. Nothing in the render step mutates the snapshot.

Usage:
    controller = MapController(width=960)
    controller.load(records, states_gdf)
    frame = controller.dispatch(ControlChanged('grid_size', 60))
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Union

from .aggregator import aggregate
from .basemap import BaseMapLayer
from .config import DEFAULT_WIDTH, viewport_height
from .controls import GRID_SIZE, MIN_SUM, SCALE_MULTIPLIER, ControlChanged, ControlSurface
from .models import Cluster, ClusterMark, CustomerRecord
from .projection import AlbersUsaProjector
from .renderer import ClusterRenderer, Reconciliation
from .utils.logging import Logger
from .viewport import IDENTITY, ViewportTransform, ZoomBehavior

logger = Logger()


@dataclass(frozen=True)
class MapState:
    width: int = DEFAULT_WIDTH
    height: int = viewport_height(DEFAULT_WIDTH)
    transform: ViewportTransform = IDENTITY
    grid_size: float = 40
    scale_multiplier: float = 1.2
    min_sum: float = 1

    @property
    def zoom(self) -> ZoomBehavior:
        return ZoomBehavior(self.width, self.height)

    def control_values(self):
        return {
            GRID_SIZE: self.grid_size,
            SCALE_MULTIPLIER: self.scale_multiplier,
            MIN_SUM: self.min_sum,
        }


@dataclass(frozen=True)
class TransformChanged:
    """Pan/zoom gesture produced a new (unconstrained) transform"""
    transform: ViewportTransform


@dataclass(frozen=True)
class Resized:
    """Render surface width changed; height follows the fixed aspect ratio"""
    width: int


MapEvent = Union[TransformChanged, ControlChanged, Resized]


def reduce(state: MapState, event: MapEvent) -> MapState:
    if isinstance(event, TransformChanged):
        return replace(state, transform=state.zoom.constrain(event.transform))
    if isinstance(event, ControlChanged):
        if event.name not in (GRID_SIZE, SCALE_MULTIPLIER, MIN_SUM):
            raise KeyError(event.name)
        return replace(state, **{event.name: event.value})
    if isinstance(event, Resized):
        width = int(event.width)
        if width <= 0:
            raise ValueError(f"Viewport width must be positive, got {event.width}")
        resized = replace(state, width=width, height=viewport_height(width))
        return replace(resized, transform=resized.zoom.constrain(state.transform))
    raise TypeError(f"Unknown map event: {event!r}")


@dataclass
class Frame:
    """Everything needed to draw one render pass"""
    state: MapState
    clusters: List[Cluster] = field(default_factory=list)
    marks: List[ClusterMark] = field(default_factory=list)
    basemap: Optional[BaseMapLayer] = None
    reconciliation: Reconciliation = field(default_factory=Reconciliation)


class MapController:
    def __init__(self, width: int = DEFAULT_WIDTH, controls: Optional[ControlSurface] = None,
                 initial_values: Optional[dict] = None):
        self.controls = controls or ControlSurface()
        values = self.controls.defaults()
        values.update(initial_values or {})
        self.state = MapState(
            width=width,
            height=viewport_height(width),
            grid_size=values[GRID_SIZE],
            scale_multiplier=values[SCALE_MULTIPLIER],
            min_sum=values[MIN_SUM],
        )
        self.projector = AlbersUsaProjector(self.state.width, self.state.height)
        self.renderer = ClusterRenderer()
        self.basemap = BaseMapLayer()
        self.records: List[CustomerRecord] = []
        self.loaded = False
        self.frame = Frame(state=self.state, basemap=self.basemap)

    def load(self, records: Iterable[CustomerRecord], geometry=None) -> Frame:
        """Take over the loaded data and run the first render pass"""
        records = list(records)
        self.records = [r for r in records if r.is_valid]
        dropped = len(records) - len(self.records)
        if dropped:
            logger.info(f"Dropped {dropped} records without finite lon/lat/value")
        self.basemap = BaseMapLayer(geometry)
        self.basemap.draw(self.projector)
        self.loaded = True
        logger.info(f"Loaded {len(self.records)} records for clustering")
        return self.redraw()

    def dispatch(self, event: MapEvent) -> Frame:
        previous = self.state
        self.state = reduce(previous, event)
        if (self.state.width, self.state.height) != (previous.width, previous.height):
            self.projector.configure(self.state.width, self.state.height)
            if self.loaded:
                self.basemap.draw(self.projector)
            logger.info(f"Viewport resized to {self.state.width}x{self.state.height}")
        if not self.loaded:
            self.frame = Frame(state=self.state, basemap=self.basemap)
            return self.frame
        return self.redraw()

    def redraw(self) -> Frame:
        state = self.state
        clusters = aggregate(self.records, self.projector, state.transform, state.grid_size, state.min_sum)
        self.renderer.render(clusters, state.scale_multiplier)
        self.frame = Frame(
            state=state,
            clusters=clusters,
            marks=[replace(mark) for mark in self.renderer.visible_marks()],
            basemap=self.basemap,
            reconciliation=self.renderer.last_reconciliation,
        )
        return self.frame
