# catchment.py
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
from shapely.geometry import Polygon, mapping
from shapely.geometry.base import BaseGeometry

import config
from stations import Station, has_valid_coords

logger = logging.getLogger(__name__)

# Styles are picked by position in the sorted (largest-first) order, not by the
# minute value, so the three tiers always nest visually.
LAYER_STYLES: List[Dict[str, Any]] = [
    {  # largest area
        "color": "#818cf8", "weight": 1, "dashArray": "4, 4",
        "fillColor": "#6366f1", "fillOpacity": 0.15,
    },
    {  # medium area
        "color": "transparent", "weight": 0,
        "fillColor": "#4f46e5", "fillOpacity": 0.20,
    },
    {  # smallest area (core)
        "color": "transparent", "weight": 0,
        "fillColor": "#312e81", "fillOpacity": 0.25,
    },
]


@dataclass(frozen=True)
class CatchmentLayer:
    minutes: int
    radius_km: float
    polygon: BaseGeometry  # Polygon or MultiPolygon, lng/lat
    z_rank: int
    style: Dict[str, Any] = field(default_factory=dict)


def radius_km(minutes: float) -> float:
    """Walking radius at a fixed pace, floored so tiny inputs stay visible."""
    return max(config.MIN_RADIUS_KM, minutes * config.WALK_SPEED_M_PER_MIN / 1000)


def style_for_rank(rank: int) -> Dict[str, Any]:
    return dict(LAYER_STYLES[min(rank, len(LAYER_STYLES) - 1)])


def circle_polygon(lat: float, lng: float, radius: float,
                   steps: int = config.CIRCLE_STEPS) -> Polygon:
    """
    Geodesic circle of `radius` km around (lat, lng) as a lng/lat polygon.

    Vertices are destination points on a sphere at evenly spaced bearings.
    """
    if radius <= 0:
        raise ValueError("radius must be > 0")
    if steps < 3:
        raise ValueError("steps must be >= 3")

    lat1 = math.radians(lat)
    lng1 = math.radians(lng)
    delta = radius / config.EARTH_RADIUS_KM
    bearings = np.radians(np.linspace(0.0, -360.0, steps, endpoint=False))

    lat2 = np.arcsin(
        np.sin(lat1) * np.cos(delta) + np.cos(lat1) * np.sin(delta) * np.cos(bearings)
    )
    lng2 = lng1 + np.arctan2(
        np.sin(bearings) * np.sin(delta) * np.cos(lat1),
        np.cos(delta) - np.sin(lat1) * np.sin(lat2),
    )
    coords = list(zip(np.degrees(lng2), np.degrees(lat2)))
    return Polygon(coords)


def _union_pair(a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
    return a.union(b)


def union_discs(discs: Sequence[BaseGeometry]) -> Optional[BaseGeometry]:
    """
    Fold-left pairwise union. A pair that fails to union is logged and
    skipped; the accumulated geometry so far is kept.
    """
    if not discs:
        return None
    acc = discs[0]
    for i, disc in enumerate(discs[1:], start=1):
        try:
            result = _union_pair(acc, disc)
        except Exception as e:
            logger.warning("Union failed for disc %d, keeping previous result: %s", i, e)
            continue
        if result is not None and not result.is_empty:
            acc = result
    return acc


def compute_layers(stations: Iterable[Station], thresholds: Sequence[float]) -> List[CatchmentLayer]:
    """
    Build one catchment layer per positive threshold, largest radius first.

    The returned order is the draw order: index 0 goes at the bottom.
    """
    valid = []
    for s in stations:
        if has_valid_coords(s):
            valid.append(s)
        else:
            logger.debug("Skipping station %s without valid coordinates", s.id)
    if not valid:
        return []

    minutes_sorted = sorted(
        (t for t in thresholds if t is not None and not math.isnan(t) and t > 0),
        reverse=True,
    )

    layers: List[CatchmentLayer] = []
    for rank, minutes in enumerate(minutes_sorted):
        r = radius_km(minutes)
        discs = [circle_polygon(s.coords.lat, s.coords.lng, r) for s in valid]
        poly = union_discs(discs)
        if poly is None:
            continue
        layers.append(CatchmentLayer(
            minutes=minutes,
            radius_km=r,
            polygon=poly,
            z_rank=rank,
            style=style_for_rank(rank),
        ))
    return layers


def layer_to_geojson(layer: CatchmentLayer) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": mapping(layer.polygon),
        "properties": {
            "minutes": layer.minutes,
            "radius_km": layer.radius_km,
            "z_rank": layer.z_rank,
        },
    }
