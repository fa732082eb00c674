# run_geocode_backfill.py
# Fills missing Latitude/Longitude in the customer CSV with a city-level
# Nominatim search, saving the file after every row.

import argparse

from cluster_map.config import Settings
from cluster_map.geocoding import NominatimSearchGeocoder, SEARCH_LAYOUT, backfill_coordinates

if __name__ == "__main__":
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Backfill missing Latitude/Longitude via Nominatim search")
    parser.add_argument("--csv", default=settings.data_csv, help=f"CSV to update in place (default: {settings.data_csv})")
    parser.add_argument("--delay", type=float, default=1.0, help="Seconds between geocoding requests (default: 1.0)")
    args = parser.parse_args()

    print(f"Reading {args.csv}...")
    geocoder = NominatimSearchGeocoder(user_agent=settings.geocoder_user_agent)
    result = backfill_coordinates(args.csv, geocoder, SEARCH_LAYOUT, delay=args.delay)

    print(f"Updated {result.processed} rows with missing Lat/Lon "
          f"({result.resolved} resolved, {result.failed} without a match, {result.skipped} already set).")
    print(f"Final {args.csv} written successfully.")
