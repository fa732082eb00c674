"""
Latitude/longitude backfill for the customer CSV.

Rows missing either coordinate are looked up one at a time against a public
geocoder (at most one request per `delay` seconds). The resolved coordinates,
or empty strings when the lookup fails or finds nothing, are written back and
the whole CSV is saved after every row so progress survives a crash. A failed
row is still counted as processed and never retried.

Two lookups are provided:
- NominatimSearchGeocoder: plain HTTP search through requests
- GeopyGeocoder: geopy's Nominatim client

Usage:
    result = backfill_coordinates('data/datall.csv', NominatimSearchGeocoder(), SEARCH_LAYOUT)
"""

import os
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import pandas as pd
import requests
from geopy.exc import GeocoderServiceError
from geopy.geocoders import Nominatim

from cluster_map.config import DEFAULT_USER_AGENT
from cluster_map.utils.data_loader import load_csv_data
from cluster_map.utils.logging import Logger

logger = Logger()

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"

Coordinates = Tuple[str, str]


class NominatimSearchGeocoder:
    """Free-text address lookup against the Nominatim search endpoint"""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, timeout: float = 30,
                 session: Optional[requests.Session] = None):
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, query: str) -> Optional[Coordinates]:
        try:
            response = self.session.get(
                NOMINATIM_SEARCH_URL,
                params={'format': 'json', 'q': query},
                headers={'User-Agent': self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error geocoding address {query!r}: {e}")
            return None

        # Errors come back as a JSON object, matches as a list
        if not isinstance(data, list) or not data:
            return None
        try:
            return str(data[0]['lat']), str(data[0]['lon'])
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected geocoder response for {query!r}: {e}")
            return None


class GeopyGeocoder:
    """Address lookup through geopy's Nominatim client"""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, timeout: float = 30, client=None):
        self.client = client or Nominatim(user_agent=user_agent, timeout=timeout)

    def lookup(self, query: str) -> Optional[Coordinates]:
        try:
            location = self.client.geocode(query)
        except GeocoderServiceError as e:
            logger.error(f"Error geocoding {query}: {e}")
            return None

        if location:
            return str(location.latitude), str(location.longitude)
        return None


def _field(row, column) -> str:
    value = row.get(column, '')
    return '' if value is None else str(value)


@dataclass(frozen=True)
class ColumnLayout:
    """Where coordinates live in the CSV and how a row becomes a search query"""
    lat_column: str
    lon_column: str
    build_query: Callable[[pd.Series], str]


# City-level search used by the main customer export (note the trailing space in 'Country ')
SEARCH_LAYOUT = ColumnLayout(
    lat_column='Latitude',
    lon_column='Longitude',
    build_query=lambda row: f"{_field(row, 'City')}, {_field(row, 'State')}, {_field(row, 'Country ')}",
)

# Street-address search for exports with Lat/Lon/Zip columns
ADDRESS_LAYOUT = ColumnLayout(
    lat_column='Lat',
    lon_column='Lon',
    build_query=lambda row: f"{_field(row, 'Address')}, {_field(row, 'City')}, {_field(row, 'State')} {_field(row, 'Zip')}",
)


@dataclass
class BackfillResult:
    processed: int = 0
    resolved: int = 0
    failed: int = 0
    skipped: int = 0


def save_csv(df: pd.DataFrame, csv_path: str) -> None:
    """Rewrite the CSV in full, replacing the old file only once the new one is complete"""
    tmp_path = f"{csv_path}.tmp"
    df.to_csv(tmp_path, index=False)
    os.replace(tmp_path, csv_path)


def backfill_coordinates(csv_path: str, geocoder, layout: ColumnLayout = SEARCH_LAYOUT,
                         delay: float = 1.0, sleep: Callable[[float], None] = time.sleep) -> BackfillResult:
    """
    Geocode every row missing latitude or longitude.

    Args:
        csv_path: CSV to update in place
        geocoder: Object with lookup(query) -> (lat, lon) or None
        layout: Coordinate columns and query builder
        delay: Seconds to wait between two requests
        sleep: Sleep function (injectable for tests)

    Returns:
        BackfillResult with per-row outcome counts
    """
    df = load_csv_data(csv_path)
    logger.info(f"Parsed {len(df)} rows from {csv_path}")
    for column in (layout.lat_column, layout.lon_column):
        if column not in df.columns:
            df[column] = ''

    result = BackfillResult()
    for position, idx in enumerate(df.index, start=1):
        row = df.loc[idx]
        has_lat = _field(row, layout.lat_column).strip() != ''
        has_lon = _field(row, layout.lon_column).strip() != ''
        if has_lat and has_lon:
            result.skipped += 1
            logger.info(f"Row {position} already has Lat/Lon, skipping.")
            continue

        if result.processed:
            sleep(delay)  # Be polite to the geocoding service

        query = layout.build_query(row)
        coordinates = geocoder.lookup(query)
        if coordinates:
            lat, lon = coordinates
            result.resolved += 1
            logger.info(f"Row {position}: {query!r} -> lat={lat}, lon={lon}")
        else:
            lat, lon = '', ''
            result.failed += 1
            logger.warning(f"Row {position}: no coordinates found for {query!r}")

        df.at[idx, layout.lat_column] = lat
        df.at[idx, layout.lon_column] = lon
        result.processed += 1

        save_csv(df, csv_path)
        logger.info(f"Row {position} updated and {csv_path} saved.")

    logger.info(f"Updated {result.processed} rows with missing Lat/Lon "
                f"({result.resolved} resolved, {result.failed} failed, {result.skipped} skipped)")
    return result
