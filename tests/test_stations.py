import math

import pandas as pd
import pytest

import config
from stations import (
    LineColor,
    filter_stations,
    is_valid_coordinate,
    load_stations,
    station_by_id,
    stations_from_frame,
)


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "stations.csv"
    path.write_text(
        "id,name,line,color,lat,lng\n"
        "R10,台北車站,淡水信義線,#E3002C,25.0478,121.5170\n"
        "BL11,西門,板南線,0070BD,25.0421,121.5082\n"
        "X01,壞站,測試線,#123456,not-a-number,121.5\n",
        encoding="utf-8",
    )
    return path


class TestLoadStations:

    def test_load_and_coerce(self, csv_path):
        stations = load_stations(str(csv_path))

        assert [s.id for s in stations] == ["R10", "BL11", "X01"]
        assert stations[0].coords.lat == pytest.approx(25.0478)
        assert stations[1].color is LineColor.BLUE  # missing '#' is tolerated
        assert math.isnan(stations[2].coords.lat)
        assert stations[2].color is LineColor.RED  # unknown colour falls back

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Station directory not found"):
            load_stations(str(tmp_path / "nope.csv"))

    def test_duplicate_ids_rejected(self):
        df = pd.DataFrame({
            "id": ["A", "A"], "name": ["a", "b"], "line": ["l", "l"],
            "color": ["#E3002C", "#E3002C"], "lat": [25.0, 25.1], "lng": [121.5, 121.6],
        })
        with pytest.raises(ValueError, match="Duplicate station ids: A"):
            stations_from_frame(df)

    def test_missing_columns_rejected(self):
        df = pd.DataFrame({"id": ["A"], "name": ["a"]})
        with pytest.raises(ValueError, match="missing columns"):
            stations_from_frame(df)

    def test_bundled_directory(self):
        stations = load_stations(config.STATIONS_CSV)

        assert stations[0].id == "R10"
        assert len({s.id for s in stations}) == len(stations)
        assert all(is_valid_coordinate(s.coords.lat, s.coords.lng) for s in stations)


class TestCoordinateValidation:

    @pytest.mark.parametrize("lat,lng", [(25.0, 121.5), (0, 0), (-33.9, 151.2)])
    def test_valid(self, lat, lng):
        assert is_valid_coordinate(lat, lng)

    @pytest.mark.parametrize("lat,lng", [
        (float("nan"), 121.5),
        (25.0, float("inf")),
        (None, 121.5),
        ("25.0", 121.5),
        (True, 121.5),
    ])
    def test_invalid(self, lat, lng):
        assert not is_valid_coordinate(lat, lng)


class TestFilterStations:

    def test_empty_term_returns_all(self, directory):
        assert filter_stations(directory, "") == list(directory)
        assert filter_stations(directory, None) == list(directory)

    def test_match_by_name_line_and_id(self, directory):
        assert [s.id for s in filter_stations(directory, "站b")] == ["B"]
        assert [s.id for s in filter_stations(directory, "文湖")] == ["C"]
        assert [s.id for s in filter_stations(directory, "a")] == ["A"]

    def test_no_match(self, directory):
        assert filter_stations(directory, "zzz") == []


def test_station_by_id(directory):
    assert station_by_id(directory, "B").name == "站B"
    assert station_by_id(directory, "missing") is None
