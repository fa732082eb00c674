# run_cluster_map.py

import argparse
import time
import webbrowser

from cluster_map.config import Settings, load_settings
from cluster_map.controller import MapController
from cluster_map.dashboard import create_cluster_map_app
from cluster_map.figure import export_snapshot_html
from cluster_map.utils import load_map_inputs


def build_controller(settings, csv_path):
    controller = MapController(width=settings.width, initial_values=load_settings())
    inputs = load_map_inputs(csv_path, settings.states_url, settings.states_layer)
    if inputs is None:
        print("❌ Failed to load map data, see app.log. The map will stay empty.")
        return controller

    controller.load(inputs.records, inputs.states)
    print(f"📍 {len(inputs.records)} customer locations, {len(controller.frame.clusters)} clusters at start")
    return controller


if __name__ == "__main__":
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Interactive grid-clustered map of new customer records")
    parser.add_argument("--csv", default=settings.data_csv, help=f"Customer CSV (default: {settings.data_csv})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Server port (default: {settings.port})")
    parser.add_argument("--export", metavar="PATH", help="Write the initial map as a standalone HTML file and exit")
    parser.add_argument("--no-browser", action="store_true", help="Do not open a browser window")
    args = parser.parse_args()

    controller = build_controller(settings, args.csv)

    if args.export:
        output_path = export_snapshot_html(controller.frame, args.export)
        print(f"Map snapshot written to {output_path}")
    else:
        app = create_cluster_map_app(controller, data_csv=args.csv)
        url = f'http://localhost:{args.port}'
        if not args.no_browser:
            print(f"Opening {url} in your browser...")
            webbrowser.open(url)
            # Give the browser a moment to open before starting the server
            time.sleep(1)
        print("Server is running. Press Ctrl+C to stop.")
        app.run(debug=False, port=args.port)
