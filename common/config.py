from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULT_UAVSAR_SERVICE_URL = (
    "https://maps.disasters.nasa.gov/ags03/rest/services/texas_flood_202507/uavsar/MapServer"
)
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
DEFAULT_OSRM_URL = "https://router.project-osrm.org"

DEFAULTS: Dict[str, Any] = {
    "tiles": {
        "service_url": DEFAULT_UAVSAR_SERVICE_URL,
        "timeout_s": 8.0,
        "cache_max_age": 600,
        "strict_range": False,
    },
    "geocoder": {
        "base_url": DEFAULT_NOMINATIM_URL,
        "user_agent": "kerr-floodmap/0.3 (evacuation demo)",
        "area_suffix": ", Kerrville, TX",
        "timeout_s": 8.0,
    },
    "routing": {
        "base_url": DEFAULT_OSRM_URL,
        "profile": "driving",
        "timeout_s": 8.0,
        "max_results": 3,
        "max_workers": 3,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8000,
        "cors_origins": ["*"],
    },
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "UAVSAR_SERVICE_URL": ("tiles", "service_url"),
    "NOMINATIM_URL": ("geocoder", "base_url"),
    "OSRM_URL": ("routing", "base_url"),
}


def _merge(base: Dict, override: Dict) -> Dict:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> Dict:
    """
    Load YAML params merged over DEFAULTS, then apply environment overrides.

    Path precedence:
      - explicit `path` arg
      - env FLOODMAP_CONFIG
      - config/params.yaml
    A missing file is not an error; the defaults apply.
    """
    env = os.environ if env is None else env
    path = path or env.get("FLOODMAP_CONFIG") or DEFAULT_CONFIG_PATH

    loaded: Dict = {}
    p = Path(path)
    if p.exists():
        with p.open("r") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: top-level YAML must be a mapping")

    cfg = _merge(DEFAULTS, loaded)
    for var, (section, key) in ENV_OVERRIDES.items():
        val = env.get(var)
        if val:
            cfg[section][key] = val
    return cfg
