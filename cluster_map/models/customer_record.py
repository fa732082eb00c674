from dataclasses import dataclass
from typing import Optional, Dict, Any
import math

import pandas as pd


def _parse_number(raw: Any) -> Optional[float]:
    """Parse a numeric CSV field; empty or missing text means absent (None)"""
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if raw == '':
            return None
    elif pd.isna(raw):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


def _parse_text(raw: Any) -> str:
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return ''
    return str(raw)


@dataclass(frozen=True)
class CustomerRecord:
    """A customer location with the number of new customer records at it"""
    address: str
    state: str
    city: str
    value: float
    lon: Optional[float]
    lat: Optional[float]

    @property
    def is_valid(self) -> bool:
        """Only records with finite lon, lat and value take part in aggregation"""
        return all(
            isinstance(v, (int, float)) and math.isfinite(v)
            for v in (self.lon, self.lat, self.value)
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomerRecord':
        """Create a CustomerRecord from a CSV row keyed by header name"""
        value = _parse_number(data.get('New customer records'))
        return cls(
            address=_parse_text(data.get('Address')),
            state=_parse_text(data.get('State')),
            city=_parse_text(data.get('City')),
            # An empty value column counts as zero customers, not as a bad row
            value=0.0 if value is None else value,
            lon=_parse_number(data.get('Longitude')),
            lat=_parse_number(data.get('Latitude')),
        )
