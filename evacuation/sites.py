from __future__ import annotations

"""
Community hazard layers for Kerr County, TX.

Static tables: emergency shelters, monitored low-water crossings and
reference flood-zone polygons. Coordinates on Site are (lat, lon); GeoJSON
geometry is (lon, lat).
"""

import copy
from typing import Dict, List, Optional

from common.types import LOW_WATER, SHELTER, Site


_TDHCA = "TDHCA flood resources (Kerr County)"

SHELTERS: List[Site] = [
    Site(
        id="shelter_fumc",
        name="First United Methodist Church",
        address="321 Thompson Dr, Kerrville, TX 78028",
        status="standby",
        note="Capacity varies",
        phone="(830) 257-0809",
        coords=(30.0416, -99.1449),
        source=_TDHCA,
        category=SHELTER,
    ),
    Site(
        id="shelter_calvary",
        name="Calvary Temple Church",
        address="3000 Loop 534, Kerrville, TX 78028",
        status="standby",
        note="Large sanctuary / gym spaces",
        phone="(830) 895-3000",
        coords=(30.0339, -99.1024),
        source=_TDHCA,
        category=SHELTER,
    ),
    Site(
        id="shelter_notredame",
        name="Notre Dame Catholic Church",
        address="909 Main St, Kerrville, TX 78028",
        status="standby",
        note="Parish hall",
        phone="(830) 257-5961",
        coords=(30.0454, -99.1408),
        source=_TDHCA,
        category=SHELTER,
    ),
    Site(
        id="shelter_schreiner",
        name="Schreiner University (Event Center)",
        address="2100 Memorial Blvd, Kerrville, TX 78028",
        status="standby",
        note="University facilities as designated",
        phone="(830) 896-5411",
        coords=(30.0409, -99.1331),
        source=_TDHCA,
        category=SHELTER,
    ),
    Site(
        id="shelter_comfort_hs",
        name="Comfort High School (aux shelter for county)",
        address="201 US-87, Comfort, TX 78013",
        status="standby",
        note="Gym / commons",
        phone="(830) 995-6430",
        coords=(29.9698, -98.9057),
        source=_TDHCA,
        category=SHELTER,
    ),
]

LOW_WATER_SITES: List[Site] = [
    Site(
        id="lowwater_louise_hays",
        name="Low Water Crossing — Louise Hays Park",
        address="Louise Hays Park, Kerrville, TX 78028",
        status="monitor",
        note="Park drive at the Guadalupe River; closes quickly during rises.",
        coords=(30.0465, -99.1472),
        source="Kerrville OEM flood watch notes",
        category=LOW_WATER,
    ),
    Site(
        id="lowwater_riverside_drive",
        name="Low Water Crossing — Riverside Dr",
        address="Riverside Dr & Guadalupe St, Kerrville, TX 78028",
        status="monitor",
        note="Neighborhood crossing routinely submerged by moderate floods.",
        coords=(30.0527, -99.1289),
        source="Kerr County road status reports",
        category=LOW_WATER,
    ),
    Site(
        id="lowwater_glen_road",
        name="Low Water Crossing — Glen Rd",
        address="Glen Rd & Lytle St, Kerrville, TX 78028",
        status="monitor",
        note="Steep approach; debris accumulation common during heavy rain.",
        coords=(30.0558, -99.1334),
        source="Kerrville public works advisories",
        category=LOW_WATER,
    ),
]


def _zone(zid: str, name: str, level: str, description: str, ring: List[List[float]]) -> Dict:
    return {
        "type": "Feature",
        "properties": {"id": zid, "name": name, "level": level, "description": description},
        "geometry": {"type": "Polygon", "coordinates": [ring]},
    }


FLOOD_ZONES: Dict = {
    "type": "FeatureCollection",
    "features": [
        _zone(
            "guadalupe-north",
            "Guadalupe River North Bank",
            "High",
            "Historic floodplain hugging the north bank of the Guadalupe River downtown.",
            [
                [-99.1545, 30.0566], [-99.1448, 30.0594], [-99.1355, 30.0549],
                [-99.1258, 30.0481], [-99.1327, 30.041], [-99.1453, 30.036],
                [-99.1539, 30.0408], [-99.1587, 30.0482], [-99.1545, 30.0566],
            ],
        ),
        _zone(
            "downtown-loop",
            "Downtown Loop Lowland",
            "Moderate",
            "Low-lying neighborhoods between Water St and Main St that accumulate runoff.",
            [
                [-99.1532, 30.0494], [-99.1477, 30.0523], [-99.1425, 30.0522],
                [-99.137, 30.0495], [-99.1369, 30.045], [-99.1417, 30.0417],
                [-99.1476, 30.0414], [-99.1524, 30.0437], [-99.1532, 30.0494],
            ],
        ),
        _zone(
            "louise-hays-park",
            "Louise Hays Park Basin",
            "Low",
            "Park basin designed to take on overflow during heavy rain events.",
            [
                [-99.1489, 30.0425], [-99.1453, 30.0448], [-99.1424, 30.0431],
                [-99.1412, 30.0396], [-99.1434, 30.0369], [-99.1479, 30.0364],
                [-99.1499, 30.0394], [-99.1489, 30.0425],
            ],
        ),
    ],
}


# -------- public API --------

def all_targets() -> List[Site]:
    """Every candidate evacuation destination: shelters first, then low-water sites."""
    return SHELTERS + LOW_WATER_SITES


def sites_by_category(category: Optional[str] = None) -> List[Site]:
    if category is None:
        return all_targets()
    if category == SHELTER:
        return list(SHELTERS)
    if category == LOW_WATER:
        return list(LOW_WATER_SITES)
    raise ValueError(f"unknown site category: {category!r}")


def get_site(site_id: str) -> Optional[Site]:
    for s in all_targets():
        if s.id == site_id:
            return s
    return None


def flood_zones() -> Dict:
    """GeoJSON FeatureCollection (a copy; callers may mutate it)."""
    return copy.deepcopy(FLOOD_ZONES)
