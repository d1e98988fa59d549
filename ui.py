# ui.py
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import folium
from streamlit_folium import st_folium

import config
from catchment import CatchmentLayer, layer_to_geojson
from state import AppState
from stations import Station, has_valid_coords, station_by_id

logger = logging.getLogger(__name__)

MARKER_DEFAULT = {"radius": 6, "weight": 2, "color": "#fff"}
MARKER_SELECTED = {"radius": 9, "weight": 4, "color": "#4f46e5"}

# Slider swatches follow the input slot, dark to light; the map itself styles
# layers by sorted order.
TIER_SWATCHES = ["#312e81", "#4f46e5", "#818cf8"]
TIER_LABELS = ["核心圈 (深)", "舒適圈 (中)", "極限圈 (淺)"]


@dataclass
class MarkerHandle:
    """Drawing state of one station marker; mutated in place between reruns."""
    station_id: str
    name: str
    lat: float
    lng: float
    fill_color: str
    radius: int = MARKER_DEFAULT["radius"]
    weight: int = MARKER_DEFAULT["weight"]
    color: str = MARKER_DEFAULT["color"]
    selected: bool = False

    @classmethod
    def for_station(cls, station: Station) -> "MarkerHandle":
        return cls(
            station_id=station.id,
            name=station.name,
            lat=float(station.coords.lat),
            lng=float(station.coords.lng),
            fill_color=station.color.value,
        )

    def set_selected(self, selected: bool) -> None:
        style = MARKER_SELECTED if selected else MARKER_DEFAULT
        self.radius = style["radius"]
        self.weight = style["weight"]
        self.color = style["color"]
        self.selected = selected

    def to_folium(self) -> folium.CircleMarker:
        return folium.CircleMarker(
            location=(self.lat, self.lng),
            radius=self.radius,
            weight=self.weight,
            color=self.color,
            opacity=1,
            fill=True,
            fill_color=self.fill_color,
            fill_opacity=0.9,
            tooltip=folium.Tooltip(f"<b>{self.name}</b>", direction="top"),
        )


class MarkerRegistry:
    """
    station id -> MarkerHandle for the whole session. Handles are created the
    first time a station shows up and are never rebuilt afterwards.
    """

    def __init__(self):
        self.handles: Dict[str, MarkerHandle] = {}

    def __contains__(self, station_id: str) -> bool:
        return station_id in self.handles

    def __len__(self) -> int:
        return len(self.handles)

    def get(self, station_id: str) -> Optional[MarkerHandle]:
        return self.handles.get(station_id)

    def sync(self, stations: Iterable[Station]) -> None:
        for s in stations:
            if s.id in self.handles or not has_valid_coords(s):
                continue
            try:
                self.handles[s.id] = MarkerHandle.for_station(s)
            except Exception as e:
                logger.warning("Failed to create marker for station %s: %s", s.name, e)

    def update_selection(self, selected_ids: Iterable[str]) -> None:
        ids = set(selected_ids)
        for sid, h in self.handles.items():
            h.set_selected(sid in ids)

    def draw_order(self) -> List[MarkerHandle]:
        # selected markers last so they sit on top
        return sorted(self.handles.values(), key=lambda h: h.selected)

    def draw(self, m: folium.Map) -> folium.FeatureGroup:
        fg = folium.FeatureGroup(name="stations", control=False)
        for h in self.draw_order():
            h.to_folium().add_to(fg)
        fg.add_to(m)
        return fg

    def find_at(self, lat: float, lng: float, tol: float = 1e-5) -> Optional[str]:
        """Station id of the marker at (lat, lng), if any."""
        best, best_d = None, tol
        for sid, h in self.handles.items():
            d = max(abs(h.lat - lat), abs(h.lng - lng))
            if d <= best_d:
                best, best_d = sid, d
        return best


@dataclass(frozen=True)
class Viewport:
    center: Optional[Tuple[float, float]] = None
    zoom: Optional[int] = None
    bounds: Optional[Tuple[Tuple[float, float], Tuple[float, float]]] = None  # ((s, w), (n, e))


def pad_bounds(south: float, west: float, north: float, east: float,
               ratio: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    dh = (north - south) * ratio
    dw = (east - west) * ratio
    return (south - dh, west - dw), (north + dh, east + dw)


def compute_viewport(selected: Sequence[Station], registry: MarkerRegistry,
                     zoom: int = config.FOCUS_ZOOM,
                     padding: float = config.FIT_PADDING) -> Optional[Viewport]:
    """
    One station: centre on it. Several: fit their markers with padding.
    Returns None when there is nothing sensible to fit.
    """
    valid = [s for s in selected if has_valid_coords(s)]
    if len(valid) == 1:
        s = valid[0]
        return Viewport(center=(s.coords.lat, s.coords.lng), zoom=zoom)
    if not valid:
        return None

    pts = [(h.lat, h.lng) for h in (registry.get(s.id) for s in valid) if h is not None]
    if not pts:
        return None
    lats = [p[0] for p in pts]
    lngs = [p[1] for p in pts]
    south, north, west, east = min(lats), max(lats), min(lngs), max(lngs)
    if not all(math.isfinite(v) for v in (south, north, west, east)):
        return None
    if north == south and east == west:
        logger.debug("Degenerate bounds for %d markers, skipping fit", len(pts))
        return None
    bounds = pad_bounds(south, west, north, east, padding)
    center = ((bounds[0][0] + bounds[1][0]) / 2, (bounds[0][1] + bounds[1][1]) / 2)
    return Viewport(center=center, bounds=bounds)


def draw_map(center=config.DEFAULT_CENTER, zoom=config.DEFAULT_ZOOM):
    m = folium.Map(
        location=center,
        zoom_start=zoom,
        tiles=None,
        control_scale=True,
    )
    folium.TileLayer(
        tiles=config.TILES_URL,
        attr=config.TILES_ATTRIBUTION,
        subdomains="abcd",
        max_zoom=config.TILES_MAX_ZOOM,
        name="CARTO Voyager",
    ).add_to(m)
    return m


def add_catchments(m, layers: Sequence[CatchmentLayer]) -> folium.FeatureGroup:
    """Draw layers in the given order; the first ends up at the bottom."""
    fg = folium.FeatureGroup(name="catchments", control=False)
    for layer in layers:
        folium.GeoJson(
            layer_to_geojson(layer),
            style_function=lambda _feature, style=layer.style: dict(style),
            interactive=False,
        ).add_to(fg)
    fg.add_to(m)
    return fg


def clicked_station(output, registry: MarkerRegistry) -> Optional[str]:
    """
    Station id behind the marker click in `st_folium` output, or None.

    The component only reports the marker position, so a repeat click on the
    same marker looks identical. Callers remount the map under a new key
    (see `map_key`) after handling a click so the next one arrives fresh.
    """
    click = (output or {}).get("last_object_clicked")
    if not click:
        return None
    lat, lng = click.get("lat"), click.get("lng")
    if lat is None or lng is None:
        return None
    return registry.find_at(float(lat), float(lng))


def apply_map_click(output, registry: MarkerRegistry, state: AppState,
                    directory: Iterable[Station]) -> bool:
    """Toggle the clicked station. Returns True if the selection changed."""
    station_id = clicked_station(output, registry)
    if not station_id:
        return False
    station = station_by_id(directory, station_id)
    if station is None:
        return False
    state.toggle(station)
    return True


def map_key(nonce: int) -> str:
    return f"catchment-map-{nonce}"


def render(m, viewport: Optional[Viewport] = None, key: str = "catchment-map"):
    kwargs = {}
    if viewport is not None:
        if viewport.bounds is not None:
            m.fit_bounds([list(viewport.bounds[0]), list(viewport.bounds[1])])
        if viewport.center is not None:
            kwargs["center"] = viewport.center
        if viewport.zoom is not None:
            kwargs["zoom"] = viewport.zoom
    return st_folium(
        m,
        height=config.MAP_HEIGHT,
        use_container_width=True,
        key=key,
        returned_objects=["last_object_clicked", "center", "zoom"],
        **kwargs,
    )


def tier_label_html(index: int) -> str:
    return (
        f'<span style="color:{TIER_SWATCHES[index]};font-size:1.1em">●</span> '
        f"{TIER_LABELS[index]}"
    )
