import pytest

from stations import LineColor
from tests.fixtures import make_station


@pytest.fixture
def station_a():
    return make_station("A", 25.05, 121.52, name="站A")


@pytest.fixture
def station_b():
    # ~1.5 km from A: discs of 0.64 km do not touch
    return make_station("B", 25.06, 121.53, name="站B", line="板南線", color=LineColor.BLUE)


@pytest.fixture
def station_near_a():
    # ~0.75 km from A: discs of 0.64 km overlap
    return make_station("C", 25.055, 121.525, name="站C", line="文湖線", color=LineColor.BROWN)


@pytest.fixture
def station_nan():
    return make_station("N", float("nan"), 121.5, name="壞站")


@pytest.fixture
def directory(station_a, station_b, station_near_a):
    return (station_a, station_b, station_near_a)
