import pytest

from locate import (
    MSG_FAILED,
    MSG_UNSUPPORTED,
    GeolocationDenied,
    GeolocationTimeout,
    GeolocationUnavailable,
    GeolocationUnsupported,
    apply_location,
    geolocation_js,
    haversine_km,
    nearest_station,
    parse_position,
    start_locating,
)
from state import AppState


class TestNearestStation:

    def test_haversine_known_distance(self):
        # one degree of latitude
        assert haversine_km(25.0, 121.5, 26.0, 121.5) == pytest.approx(111.19, abs=0.01)
        assert haversine_km(25.0, 121.5, 25.0, 121.5) == 0

    def test_picks_closest(self, directory):
        assert nearest_station(25.0601, 121.5301, directory).id == "B"
        assert nearest_station(25.0501, 121.5201, directory).id == "A"

    def test_ignores_invalid_coordinates(self, station_a, station_nan):
        assert nearest_station(25.0, 121.5, [station_nan, station_a]).id == "A"

    def test_empty_directory(self):
        assert nearest_station(25.0, 121.5, []) is None


class TestParsePosition:

    def test_success(self):
        assert parse_position({"lat": 25.05, "lng": 121.52}) == (25.05, 121.52)

    @pytest.mark.parametrize("code,exc", [
        (0, GeolocationUnsupported),
        (1, GeolocationDenied),
        (2, GeolocationUnavailable),
        (3, GeolocationTimeout),
        (99, GeolocationUnavailable),
    ])
    def test_error_codes(self, code, exc):
        with pytest.raises(exc):
            parse_position({"error": code, "message": "nope"})

    @pytest.mark.parametrize("payload", ["garbage", {"lat": None, "lng": 1.0}, {}])
    def test_malformed_payload(self, payload):
        with pytest.raises(GeolocationUnavailable):
            parse_position(payload)


class TestApplyLocation:

    def test_success_replaces_selection(self, directory, station_a):
        state = AppState(selected=[station_a])
        assert start_locating(state)

        message = apply_location(state, {"lat": 25.0601, "lng": 121.5301}, directory)

        assert message is None
        assert state.selected_ids() == ("B",)
        assert not state.locating

    def test_result_applies_after_manual_change(self, directory, station_a, station_near_a):
        state = AppState(selected=[station_a])
        start_locating(state)
        state.toggle(station_near_a)  # user keeps clicking while waiting

        apply_location(state, {"lat": 25.0601, "lng": 121.5301}, directory)

        assert state.selected_ids() == ("B",)

    def test_denied_reports_message_and_resets(self, directory, station_a):
        state = AppState(selected=[station_a])
        start_locating(state)

        message = apply_location(state, {"error": 1, "message": "User denied"}, directory)

        assert message == MSG_FAILED
        assert state.selected_ids() == ("A",)
        assert not state.locating

    def test_unsupported_message(self, directory):
        state = AppState()
        start_locating(state)
        assert apply_location(state, {"error": 0}, directory) == MSG_UNSUPPORTED
        assert not state.locating

    def test_no_reentry_while_locating(self):
        state = AppState()
        assert start_locating(state)
        assert not start_locating(state)
        assert state.locate_request == 1


def test_geolocation_js_carries_options():
    js = geolocation_js()

    assert "getCurrentPosition" in js
    assert '"enableHighAccuracy": true' in js
    assert '"timeout": 5000' in js
    assert '"maximumAge": 0' in js
