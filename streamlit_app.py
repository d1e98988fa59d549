# streamlit_app.py
import logging

import streamlit as st

import config
from analysis import analyze
from catchment import compute_layers
from locate import apply_location, request_position, start_locating
from log_setup import setup_logger
from state import AppState
from stations import filter_stations, load_stations
from ui import (
    TIER_LABELS,
    MarkerRegistry,
    add_catchments,
    apply_map_click,
    compute_viewport,
    draw_map,
    map_key,
    render,
    tier_label_html,
)

setup_logger("", config.LOG_DIR, console_level=config.LOG_LEVEL)
logger = logging.getLogger("streamlit_app")

# -------------------------------
# App config
# -------------------------------
st.set_page_config(page_title="北捷步行圈", page_icon="🚇", layout="wide")
st.title("北捷步行圈")
st.caption("自訂三個步行時間，探索不同範圍的生活圈")

# -------------------------------
# Load station directory (cached)
# -------------------------------
@st.cache_resource(show_spinner=False)
def _load_stations_cached(path):
    return load_stations(path)

with st.sidebar:
    stations_csv = st.text_input("Station directory CSV", config.STATIONS_CSV)

try:
    directory = _load_stations_cached(stations_csv)
except (OSError, ValueError) as e:
    logger.error("Could not load station directory: %s", e)
    st.error(str(e))
    st.stop()

if "app_state" not in st.session_state:
    st.session_state["app_state"] = AppState.initial(directory)
if "marker_registry" not in st.session_state:
    st.session_state["marker_registry"] = MarkerRegistry()
if "map_nonce" not in st.session_state:
    st.session_state["map_nonce"] = 0

state: AppState = st.session_state["app_state"]
registry: MarkerRegistry = st.session_state["marker_registry"]

# -------------------------------
# Sidebar controls
# -------------------------------
with st.sidebar:
    st.header("步行時間")
    for i, minutes in enumerate(state.thresholds):
        st.markdown(tier_label_html(i), unsafe_allow_html=True)
        value = st.slider(TIER_LABELS[i], config.THRESHOLD_MIN, config.THRESHOLD_MAX, int(minutes),
                          key=f"threshold-{i}", format="%d 分", label_visibility="collapsed")
        if value != minutes:
            state.set_threshold(i, value)

    st.divider()
    st.header("選擇站點")
    st.caption("可複選")

    c1, c2 = st.columns(2)
    if state.is_all_selected(directory):
        c1.button("取消全選", on_click=state.clear, use_container_width=True)
    else:
        c1.button("全選", on_click=state.select_all, args=(directory,), use_container_width=True)
    c2.button("定位中..." if state.locating else "📍 最近站點",
              on_click=start_locating, args=(state,),
              disabled=state.locating, use_container_width=True)

    if "locate_error" in st.session_state:
        st.error(st.session_state.pop("locate_error"))

    term = st.text_input("搜尋", placeholder="搜尋站名或編號 (例: Y12)...", label_visibility="collapsed")
    matches = filter_stations(directory, term)
    if not matches:
        st.info("沒有找到符合的站點")
    for s in matches:
        active = state.is_selected(s.id)
        st.button(
            f"{'✅' if active else '⚪'} {s.id}  {s.name}",
            key=f"station-{s.id}",
            on_click=state.toggle,
            args=(s,),
            type="primary" if active else "secondary",
            use_container_width=True,
        )

# -------------------------------
# Geolocation (answer arrives on a later rerun)
# -------------------------------
if state.locating:
    payload = request_position(key=f"geolocate-{state.locate_request}")
    if payload is not None:
        message = apply_location(state, payload, directory)
        if message:
            st.session_state["locate_error"] = message
        st.rerun()

# -------------------------------
# Map
# -------------------------------
registry.sync(directory)
registry.update_selection(state.selected_ids())
layers = compute_layers(state.selected, state.thresholds)

viewport = None
if st.session_state.get("viewport_key") != state.selected_ids():
    viewport = compute_viewport(state.selected, registry)
    st.session_state["viewport_key"] = state.selected_ids()

center, zoom = st.session_state.get("map_view", (config.DEFAULT_CENTER, config.DEFAULT_ZOOM))

col1, col2 = st.columns([7, 4], gap="large")

with col1:
    m = draw_map(center=center, zoom=zoom)
    add_catchments(m, layers)
    registry.draw(m)
    out = render(m, viewport, key=map_key(st.session_state["map_nonce"]))

    if out and out.get("center") and out.get("zoom"):
        c = out["center"]
        st.session_state["map_view"] = ((c["lat"], c["lng"]), out["zoom"])

    if apply_map_click(out, registry, state, directory):
        st.session_state["map_nonce"] += 1
        st.rerun()

# -------------------------------
# Area analysis
# -------------------------------
with col2:
    state.sync_analysis()
    if state.selected:
        st.subheader("✨ AI 區域分析")
        if state.analysis is None and not state.analyzing:
            if st.button(f"開始分析 ({len(state.selected)})", type="primary"):
                state.analyzing = True
                try:
                    with st.spinner("Gemini 正在探索周邊環境..."):
                        state.analysis = analyze(state.selected, state.max_minutes())
                finally:
                    state.analyzing = False

        result = state.analysis
        if result is not None:
            st.markdown(f"**{'、'.join(s.name for s in state.selected)}**")
            st.info(result.summary)
            st.caption("推薦探索")
            for place in result.places:
                st.markdown(f"📍 {place}")

    st.divider()
    if layers:
        st.caption(" • ".join(f"{layer.minutes} 分 ≈ {layer.radius_km * 1000:.0f} m" for layer in layers))
    st.caption("步行距離以每分鐘 80 公尺的直線半徑估算，未考慮實際路網。")
