# config.py
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

# Station directory
STATIONS_CSV = os.getenv("STATIONS_CSV", str(BASE_DIR / "data" / "stations.csv"))

# Walking model
WALK_SPEED_M_PER_MIN = 80
MIN_RADIUS_KM = 0.1
CIRCLE_STEPS = 64
EARTH_RADIUS_KM = 6371.0088

# Time thresholds (minutes)
DEFAULT_THRESHOLDS = [2, 5, 8]
THRESHOLD_MIN = 1
THRESHOLD_MAX = 30

# Map
DEFAULT_CENTER = (25.0478, 121.5170)  # Taipei Main Station
DEFAULT_ZOOM = 13
FOCUS_ZOOM = 14
FIT_PADDING = 0.3
MAP_HEIGHT = 640
TILES_URL = "https://{s}.basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}{r}.png"
TILES_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors '
    '&copy; <a href="https://carto.com/attributions">CARTO</a>'
)
TILES_MAX_ZOOM = 20

# Browser geolocation
GEOLOCATION_OPTIONS = {"enableHighAccuracy": True, "timeout": 5000, "maximumAge": 0}

# Text generation (Gemini REST API)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_ENDPOINT = os.getenv(
    "GEMINI_ENDPOINT",
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
)
GEMINI_TIMEOUT_S = float(os.getenv("GEMINI_TIMEOUT_S", "20"))

# Logging
LOG_DIR = os.getenv("LOG_DIR", str(BASE_DIR / "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
