"""Shared builders for station test data."""

from stations import Coordinates, LineColor, Station


def make_station(sid, lat, lng, name=None, line="淡水信義線", color=LineColor.RED):
    return Station(id=sid, name=name or sid, line=line, color=color, coords=Coordinates(lat, lng))
