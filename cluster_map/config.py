import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_STATES_URL = "https://cdn.jsdelivr.net/npm/us-atlas@3/states-10m.json"
DEFAULT_STATES_LAYER = "states"
DEFAULT_DATA_CSV = os.path.join("data", "datall.csv")
DEFAULT_PORT = 8050
DEFAULT_WIDTH = 960
DEFAULT_USER_AGENT = "geodata-script/1.0"

# Aspect ratio of the render surface (height = width * ASPECT_RATIO)
ASPECT_RATIO = 0.62


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment (.env supported)"""
    data_csv: str = DEFAULT_DATA_CSV
    states_url: str = DEFAULT_STATES_URL
    states_layer: str = DEFAULT_STATES_LAYER
    port: int = DEFAULT_PORT
    width: int = DEFAULT_WIDTH
    geocoder_user_agent: str = DEFAULT_USER_AGENT

    @property
    def height(self) -> int:
        return viewport_height(self.width)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'Settings':
        """Load settings from environment variables, reading .env first"""
        load_dotenv(dotenv_path, override=False)
        return cls(
            data_csv=os.getenv("CLUSTER_MAP_DATA_CSV", DEFAULT_DATA_CSV),
            states_url=os.getenv("CLUSTER_MAP_STATES_URL", DEFAULT_STATES_URL),
            states_layer=os.getenv("CLUSTER_MAP_STATES_LAYER", DEFAULT_STATES_LAYER),
            port=int(os.getenv("CLUSTER_MAP_PORT", DEFAULT_PORT)),
            width=int(os.getenv("CLUSTER_MAP_WIDTH", DEFAULT_WIDTH)),
            geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", DEFAULT_USER_AGENT),
        )


def viewport_height(width: int) -> int:
    # Round half up, as browsers do
    return int(math.floor(width * ASPECT_RATIO + 0.5))


def get_config_path():
    """Get path to config file in data directory"""
    script_dir = Path(__file__).parent.parent  # Go up from cluster_map/ to project root
    data_dir = script_dir / "data"
    data_dir.mkdir(exist_ok=True)
    return data_dir / "config.json"

def save_settings(grid_size, scale_multiplier, min_sum, data_csv=None):
    """Save the last used control values"""
    config = {
        "grid_size": grid_size,
        "scale_multiplier": scale_multiplier,
        "min_sum": min_sum,
        "last_data_csv": data_csv or "",
    }
    try:
        with open(get_config_path(), 'w') as f:
            json.dump(config, f, indent=2)
    except Exception:
        pass  # Fail silently

def load_settings():
    """Load the last used control values, as a dict (empty when nothing is saved)"""
    try:
        config_path = get_config_path()
        if config_path.exists():
            with open(config_path, 'r') as f:
                config = json.load(f)
                return {
                    key: config[key]
                    for key in ("grid_size", "scale_multiplier", "min_sum")
                    if isinstance(config.get(key), (int, float))
                }
    except Exception:
        pass  # Fail silently

    return {}
