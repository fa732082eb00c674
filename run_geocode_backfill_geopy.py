# run_geocode_backfill_geopy.py
# Fills missing Lat/Lon from the street address (Address, City, State Zip)
# using geopy's Nominatim client, saving the file after every row.

import argparse

from cluster_map.config import Settings
from cluster_map.geocoding import ADDRESS_LAYOUT, GeopyGeocoder, backfill_coordinates

if __name__ == "__main__":
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Backfill missing Lat/Lon from street addresses via geopy")
    parser.add_argument("--csv", default=settings.data_csv, help=f"CSV to update in place (default: {settings.data_csv})")
    parser.add_argument("--delay", type=float, default=1.0, help="Seconds between geocoding requests (default: 1.0)")
    args = parser.parse_args()

    geocoder = GeopyGeocoder(user_agent=settings.geocoder_user_agent)
    result = backfill_coordinates(args.csv, geocoder, ADDRESS_LAYOUT, delay=args.delay)

    print(f"Geocoded {result.processed} rows: {result.resolved} resolved, {result.failed} left blank.")
