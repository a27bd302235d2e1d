import pytest

from hue_py.errors import ValidationError
from hue_py.routing import (
    V1_COLLECTIONS,
    V2_BASE_PATH,
    ApiGeneration,
    ResourceRoute,
    generation_for,
    route,
)

API_PATH = "/api/testkey"


class TestRouteV1:
    @pytest.mark.parametrize("name", sorted(V1_COLLECTIONS))
    def test_collection_without_remainder(self, name):
        for path in (f"/{name}", f"/{name}/1"):
            r = route(path, API_PATH)
            assert r.generation == ApiGeneration.V1
            assert r.base_path == API_PATH
            assert r.resource == path
            assert r.remainder == ()

    def test_collection_attribute_navigates(self):
        r = route("/lights/1/state/on", API_PATH)
        assert r == ResourceRoute(ApiGeneration.V1, API_PATH, "/lights/1", ("state", "on"))

    def test_root(self):
        r = route("/", API_PATH)
        assert r.generation == ApiGeneration.V1
        assert r.resource == "/"
        assert r.remainder == ()
        assert r.url_path == API_PATH

    @pytest.mark.parametrize("name", ["config", "capabilities"])
    def test_root_resource(self, name):
        r = route(f"/{name}", API_PATH)
        assert r.generation == ApiGeneration.V1
        assert r.resource == f"/{name}"
        assert r.remainder == ()

    def test_config_attribute_navigates(self):
        r = route("/config/whitelist/abc", API_PATH)
        assert r.resource == "/config"
        assert r.remainder == ("whitelist", "abc")

    def test_url_path(self):
        assert route("/lights/1", API_PATH).url_path == "/api/testkey/lights/1"

    def test_write_does_not_navigate(self):
        r = route("/lights/1/state", API_PATH, navigate=False)
        assert r.generation == ApiGeneration.V1
        assert r.resource == "/lights/1/state"
        assert r.remainder == ()


class TestRouteV2:
    def test_resource_prefix_by_id(self):
        r = route("/resource/light/3", API_PATH)
        assert r.generation == ApiGeneration.V2
        assert r.base_path == V2_BASE_PATH
        assert r.resource == "/light/3"
        assert r.remainder == ("0",)
        assert r.url_path == "/clip/v2/resource/light/3"

    def test_type_and_id_inject_index(self):
        r = route("/light/3/on/on", API_PATH)
        assert r.resource == "/light/3"
        assert r.remainder == ("0", "on", "on")

    def test_type_only(self):
        r = route("/light", API_PATH)
        assert r.generation == ApiGeneration.V2
        assert r.resource == "/light"
        assert r.remainder == ()

    def test_resource_prefix_only(self):
        r = route("/resource", API_PATH)
        assert r.generation == ApiGeneration.V2
        assert r.resource == "/"
        assert r.url_path == V2_BASE_PATH

    def test_resource_prefix_type_only(self):
        assert route("/resource/device", API_PATH).resource == "/device"

    def test_write_strips_resource_prefix(self):
        r = route("/resource/light/3", API_PATH, navigate=False)
        assert r.resource == "/light/3"
        assert r.remainder == ()

    def test_unknown_type_is_v2(self):
        assert generation_for("/grouped_light") == ApiGeneration.V2
        assert generation_for("/lights") == ApiGeneration.V1


class TestRouteValidation:
    @pytest.mark.parametrize("path", ["", "lights/1", None, 42])
    def test_malformed_path(self, path):
        with pytest.raises(ValidationError, match="invalid resource"):
            route(path, API_PATH)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            route("lights", API_PATH)

    def test_deterministic(self):
        assert route("/groups/1/action/on", API_PATH) == route("/groups/1/action/on", API_PATH)
