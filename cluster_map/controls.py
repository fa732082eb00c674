"""
Control surface: the three user-adjustable aggregation parameters.

Widgets only hand over raw values; this module owns the parameter specs
(bounds, defaults), the live label text and the parsing of widget input into
ControlChanged events for the map controller.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

GRID_SIZE = 'grid_size'
SCALE_MULTIPLIER = 'scale_multiplier'
MIN_SUM = 'min_sum'


@dataclass(frozen=True)
class ControlChanged:
    """A parameter changed through its widget"""
    name: str
    value: float


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    title: str
    minimum: float
    maximum: float
    step: float
    default: float
    format_label: Callable[[float], str]

    def parse(self, raw) -> float:
        if isinstance(raw, bool):
            raise ValueError(f"{self.name}: expected a number, got {raw!r}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{self.name}: expected a number, got {raw!r}")
        if value != value:
            raise ValueError(f"{self.name}: NaN is not a valid value")
        if float(self.step).is_integer() and value.is_integer():
            return int(value)
        return value


def _format_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


PARAMETERS: List[ParameterSpec] = [
    ParameterSpec(GRID_SIZE, "Grid size (px)", 10, 120, 2, 40, _format_count),
    ParameterSpec(SCALE_MULTIPLIER, "Bubble scale", 0.5, 3.0, 0.1, 1.2,
                  lambda v: f"{float(v):.1f}×"),
    ParameterSpec(MIN_SUM, "Minimum cluster sum", 0, 100, 1, 1,
                  lambda v: f"{_format_count(v)}+"),
]


class ControlSurface:
    """Parameter registry with label formatting and change parsing"""

    def __init__(self, parameters: Optional[List[ParameterSpec]] = None):
        self.parameters: Dict[str, ParameterSpec] = {
            spec.name: spec for spec in (parameters or PARAMETERS)
        }

    def __iter__(self):
        return iter(self.parameters.values())

    def defaults(self) -> Dict[str, float]:
        return {name: spec.default for name, spec in self.parameters.items()}

    def change(self, name: str, raw_value) -> ControlChanged:
        """Turn a raw widget value into a change event (KeyError for unknown controls)"""
        spec = self.parameters[name]
        return ControlChanged(name=name, value=spec.parse(raw_value))

    def label(self, name: str, value: float) -> str:
        return self.parameters[name].format_label(value)

    def labels(self, values: Mapping[str, float]) -> Dict[str, str]:
        """Live label text for every parameter, e.g. {'grid_size': '40', ...}"""
        return {name: spec.format_label(values[name]) for name, spec in self.parameters.items()}
