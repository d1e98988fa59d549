# stations.py
import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "name", "line", "color", "lat", "lng")


class LineColor(str, Enum):
    RED = "#E3002C"
    BLUE = "#0070BD"
    GREEN = "#008659"
    ORANGE = "#F8B61C"
    BROWN = "#C48C31"
    YELLOW = "#FFD306"
    LIGHT_GREEN = "#A3D063"  # Wanda line


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class Station:
    id: str
    name: str
    line: str
    color: LineColor
    coords: Coordinates


def is_valid_coordinate(lat, lng) -> bool:
    """True for real, finite numbers. Strings, bools, None and NaN are rejected."""
    for v in (lat, lng):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return False
        if not math.isfinite(v):
            return False
    return True


def has_valid_coords(station: Station) -> bool:
    c = station.coords
    return c is not None and is_valid_coordinate(c.lat, c.lng)


def _line_color(value) -> LineColor:
    x = str(value or "").strip().upper()
    if x and not x.startswith("#"):
        x = f"#{x}"
    try:
        return LineColor(x)
    except ValueError:
        logger.debug("Unknown line color %r, using red", value)
        return LineColor.RED


def stations_from_frame(df: pd.DataFrame) -> Tuple[Station, ...]:
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Station directory is missing columns: {', '.join(missing)}")

    df = df.copy()
    # coordinates sometimes come as strings; bad values become NaN and are
    # filtered out later by the geometry and marker code
    for col in ("lat", "lng"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    dupes = df["id"][df["id"].duplicated()].unique().tolist()
    if dupes:
        raise ValueError(f"Duplicate station ids: {', '.join(map(str, dupes))}")

    return tuple(
        Station(
            id=str(r.id),
            name=str(r.name),
            line=str(r.line),
            color=_line_color(r.color),
            coords=Coordinates(float(r.lat), float(r.lng)),
        )
        for r in df.itertuples(index=False)
    )


def load_stations(csv_path: str) -> Tuple[Station, ...]:
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Station directory not found at {csv_path}. "
            "Expected a CSV with columns id,name,line,color,lat,lng"
        )
    df = pd.read_csv(path, dtype={"id": str, "name": str, "line": str, "color": str})
    stations = stations_from_frame(df)
    logger.info("Loaded %d stations from %s", len(stations), path)
    return stations


def filter_stations(stations: Iterable[Station], term: str) -> List[Station]:
    """Case-insensitive substring match on name, line or id."""
    t = (term or "").strip().lower()
    return [
        s for s in stations
        if t in s.name.lower() or t in s.line.lower() or t in s.id.lower()
    ]


def station_by_id(stations: Iterable[Station], station_id: str):
    for s in stations:
        if s.id == station_id:
            return s
    return None
