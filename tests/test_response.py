import pytest

from hue_py.errors import HueApiError
from hue_py.response import HueResponse, normalize_v1, normalize_v2
from hue_py.transport.http import HttpRequest, HttpResponse

REQUEST = HttpRequest(1, "PUT", "/api/key/lights/1/state", "https://bridge/api/key/lights/1/state")


def _response(body, headers=None) -> HttpResponse:
    return HttpResponse(REQUEST, 200, "OK", headers or {}, body)


def _error(type_: int, address: str = "/lights/1/state/bri") -> dict:
    return {"error": {"type": type_, "address": address, "description": f"error {type_}"}}


class TestNormalizeV1:
    def test_success_keyed_by_last_segment(self):
        body = [
            {"success": {"/lights/1/state/on": True}},
            {"success": {"/lights/1/state/bri": 254}},
        ]
        result = normalize_v1(_response(body))
        assert result.success == {"on": True, "bri": 254}
        assert result.errors == []
        assert result.body == body

    def test_non_critical_error_continues(self):
        reported: list[HueApiError] = []
        body = [_error(7), {"success": {"/lights/1/state/on": True}}]
        result = normalize_v1(_response(body), reported.append)
        assert result.success == {"on": True}
        assert len(result.errors) == 1
        assert result.errors[0].type == 7
        assert result.errors[0].non_critical
        assert reported == result.errors

    @pytest.mark.parametrize("type_", [6, 7, 8, 201])
    def test_non_critical_types(self, type_):
        result = normalize_v1(_response([_error(type_)]))
        assert result.errors[0].non_critical

    def test_critical_error_aborts_batch(self):
        # Later entries of the batch are deliberately left unprocessed.
        reported: list[HueApiError] = []
        body = [_error(1, "/lights/1/state"), {"success": {"/lights/1/state/on": True}}]
        with pytest.raises(HueApiError) as exc_info:
            normalize_v1(_response(body), reported.append)
        error = exc_info.value
        assert error.type == 1
        assert not error.non_critical
        assert error.request is REQUEST
        assert str(error) == "/lights/1/state: api error 1: error 1"
        assert reported == [error]

    def test_critical_after_non_critical_keeps_earlier_success(self):
        reported: list[HueApiError] = []
        body = [
            {"success": {"/lights/1/state/on": True}},
            _error(201),
            _error(901),
            {"success": {"/lights/1/state/bri": 1}},
        ]
        with pytest.raises(HueApiError, match="api error 901"):
            normalize_v1(_response(body), reported.append)
        assert [e.type for e in reported] == [201, 901]

    def test_object_body_passes_through(self):
        body = {"1": {"name": "Hue color lamp 1"}}
        result = normalize_v1(_response(body))
        assert isinstance(result, HueResponse)
        assert result.body == body
        assert result.success == {}

    def test_empty_body(self):
        result = normalize_v1(_response(None))
        assert result.body is None
        assert result.status == 200
        assert result.request is REQUEST

    def test_error_without_address(self):
        body = [{"error": {"type": 101, "address": "", "description": "link button not pressed"}}]
        with pytest.raises(HueApiError) as exc_info:
            normalize_v1(_response(body))
        assert str(exc_info.value) == "api error 101: link button not pressed"


class TestNormalizeV2:
    def test_data_becomes_body(self):
        data = [{"id": "abc", "type": "light", "on": {"on": True}}]
        result = normalize_v2(_response({"data": data, "errors": []}))
        assert result.body == data
        assert result.errors == []

    def test_errors_reported_not_collected(self):
        reported: list[HueApiError] = []
        body = {
            "data": [{"rid": "abc", "rtype": "light"}],
            "errors": [{"description": "device (light) is \"soft off\""}, {"description": ""}],
        }
        result = normalize_v2(_response(body), reported.append)
        assert result.errors == []
        assert len(reported) == 1
        assert reported[0].type is None
        assert reported[0].description == 'device (light) is "soft off"'
        assert not reported[0].non_critical
        assert result.body == [{"rid": "abc", "rtype": "light"}]

    def test_headers_exposed(self):
        result = normalize_v2(_response(None, {"hue-application-id": "app"}))
        assert result.body is None
        assert result.headers["hue-application-id"] == "app"
