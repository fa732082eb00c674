import os
from dataclasses import dataclass
from typing import List, Optional

import geopandas as gpd
import pandas as pd

from cluster_map.models import CustomerRecord
from cluster_map.utils.logging import Logger

logger = Logger()

RECORD_COLUMNS = ['Address', 'State', 'City', 'New customer records', 'Latitude', 'Longitude']


def load_csv_data(filepath: str) -> pd.DataFrame:
    """
    Load data from a CSV file.

    Every column is read as text so empty cells stay empty strings; numeric
    parsing happens in CustomerRecord.from_dict.

    Args:
        filepath: Path to the CSV file

    Returns:
        DataFrame with the CSV data
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    try:
        df = pd.read_csv(filepath, dtype=str, keep_default_na=False)
    except Exception as e:
        raise ValueError(f"Error reading CSV file: {e}")

    return df


def records_from_dataframe(df: pd.DataFrame) -> List[CustomerRecord]:
    """
    Convert CSV rows to customer records, dropping rows without finite
    coordinates and value.

    Args:
        df: DataFrame with the customer CSV columns

    Returns:
        List of valid CustomerRecord objects, in row order
    """
    missing = [col for col in ('Latitude', 'Longitude') if col not in df.columns]
    if missing:
        raise ValueError(f"Customer CSV is missing required columns: {missing}")

    records = [CustomerRecord.from_dict(row) for row in df.to_dict('records')]
    valid = [record for record in records if record.is_valid]
    if len(valid) < len(records):
        logger.info(f"Skipped {len(records) - len(valid)} of {len(records)} rows with missing or invalid lat/lon/value")
    return valid


def load_customer_records(filepath: str) -> List[CustomerRecord]:
    return records_from_dataframe(load_csv_data(filepath))


def load_states_geometry(source: str, layer: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Read state boundary polygons (TopoJSON or GeoJSON, local path or URL).

    Args:
        source: Path or URL of the geometry file
        layer: Layer name for multi-layer sources such as the us-atlas
            TopoJSON ('states'); None for single-layer files

    Returns:
        GeoDataFrame of state polygons
    """
    if layer:
        return gpd.read_file(source, layer=layer)
    return gpd.read_file(source)


@dataclass
class MapInputs:
    records: List[CustomerRecord]
    states: gpd.GeoDataFrame


def load_map_inputs(csv_path: str, states_source: str, states_layer: Optional[str] = None) -> Optional[MapInputs]:
    """
    Load customer records and state geometry together.

    Loading is all-or-nothing: if either source fails the error is logged and
    None is returned so nothing gets rendered.
    """
    try:
        records = load_customer_records(csv_path)
        states = load_states_geometry(states_source, layer=states_layer)
    except Exception as e:
        logger.error(f"Failed to load map data ({csv_path}, {states_source}): {e}")
        return None

    logger.info(f"Loaded {len(records)} customer records and {len(states)} state geometries")
    return MapInputs(records=records, states=states)
