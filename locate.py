# locate.py
import json
import logging
import math
from typing import Iterable, Optional, Tuple

from streamlit_js_eval import streamlit_js_eval

import config
from state import AppState
from stations import Station, has_valid_coords, is_valid_coordinate

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371

MSG_UNSUPPORTED = "您的瀏覽器不支援地理定位功能"
MSG_FAILED = "無法獲取您的位置，請確認是否允許存取位置資訊。"


class GeolocationError(Exception):
    code = 2
    user_message = MSG_FAILED


class GeolocationUnsupported(GeolocationError):
    code = 0
    user_message = MSG_UNSUPPORTED


class GeolocationDenied(GeolocationError):
    code = 1


class GeolocationUnavailable(GeolocationError):
    code = 2


class GeolocationTimeout(GeolocationError):
    code = 3


_ERRORS_BY_CODE = {cls.code: cls for cls in (
    GeolocationUnsupported, GeolocationDenied, GeolocationUnavailable, GeolocationTimeout,
)}


def geolocation_js(options: Optional[dict] = None) -> str:
    """
    JS expression resolving to {lat, lng} or {error, message}. It never
    rejects, so every outcome reaches Python as a plain payload.
    """
    opts = json.dumps(options or config.GEOLOCATION_OPTIONS)
    return (
        "new Promise((resolve) => {"
        " if (!navigator.geolocation) { resolve({error: 0, message: 'unsupported'}); return; }"
        " navigator.geolocation.getCurrentPosition("
        "  (p) => resolve({lat: p.coords.latitude, lng: p.coords.longitude}),"
        "  (e) => resolve({error: e.code, message: e.message}),"
        f"  {opts});"
        "})"
    )


def request_position(key: str):
    """Ask the browser for its position. Returns None until the browser answers."""
    return streamlit_js_eval(js_expressions=geolocation_js(), key=key)


def parse_position(payload) -> Tuple[float, float]:
    if not isinstance(payload, dict):
        raise GeolocationUnavailable(f"unexpected geolocation payload: {payload!r}")
    if "error" in payload:
        cls = _ERRORS_BY_CODE.get(payload.get("error"), GeolocationUnavailable)
        raise cls(payload.get("message") or "geolocation failed")
    lat, lng = payload.get("lat"), payload.get("lng")
    if not is_valid_coordinate(lat, lng):
        raise GeolocationUnavailable(f"invalid coordinates: {lat!r}, {lng!r}")
    return float(lat), float(lng)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest_station(lat: float, lng: float, stations: Iterable[Station]) -> Optional[Station]:
    best, best_d = None, math.inf
    for s in stations:
        if not has_valid_coords(s):
            continue
        d = haversine_km(lat, lng, s.coords.lat, s.coords.lng)
        if d < best_d:
            best, best_d = s, d
    return best


def start_locating(state: AppState) -> bool:
    """Begin a request. Returns False if one is already in flight."""
    if state.locating:
        return False
    state.locating = True
    state.locate_request += 1
    return True


def apply_location(state: AppState, payload, stations: Iterable[Station]) -> Optional[str]:
    """
    Resolve a geolocation payload against the directory.

    The nearest station replaces the selection whenever the answer arrives,
    even if the selection changed while waiting. Returns a user-facing error
    message, or None on success. `locating` is reset either way.
    """
    try:
        lat, lng = parse_position(payload)
        station = nearest_station(lat, lng, stations)
        if station is not None:
            state.replace_selection(station)
            logger.info("Nearest station to (%.5f, %.5f) is %s", lat, lng, station.id)
        return None
    except GeolocationError as e:
        logger.error("Geolocation error: %s", e)
        return e.user_message
    finally:
        state.locating = False
