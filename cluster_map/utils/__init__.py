"""
Utils package for the customer cluster map.

This package provides utilities for:
- Loading customer records from CSV and state geometry from TopoJSON/GeoJSON
- The project-wide file logger

Usage examples:

    from cluster_map.utils import load_map_inputs
    inputs = load_map_inputs('data/datall.csv', STATES_URL, 'states')

    from cluster_map.utils.logging import Logger
    logger = Logger()
"""

from .data_loader import (
    load_csv_data,
    records_from_dataframe,
    load_customer_records,
    load_states_geometry,
    load_map_inputs,
    MapInputs
)

__all__ = [
    'load_csv_data',
    'records_from_dataframe',
    'load_customer_records',
    'load_states_geometry',
    'load_map_inputs',
    'MapInputs',
    'data_loader'
]

from . import data_loader
