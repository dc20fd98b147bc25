"""
Tests for config bundle loading.
"""

import json

import pytest

from shared.errors import ConfigMalformed, ConfigUnavailable, ExternalServiceError
from shared.test_helpers import StubParameterStore, create_config_json
from service_edge_auth.app.config.loader import ConfigBundle, ConfigLoader

PARAMETER_NAME = "/hosting/auth-config"


class TestConfigBundle:
    """Bundle parsing from the stored camelCase JSON."""

    def test_parses_stored_keys(self):
        bundle = ConfigBundle.model_validate(json.loads(create_config_json()))
        assert bundle.idp_domain == "auth.example.com"
        assert bundle.client_id == "test-client-id"
        assert bundle.client_secret == "test-client-secret"
        assert bundle.region == "us-east-1"
        assert bundle.user_pool_id == "us-east-1_TestPool"
        assert bundle.callback_url == "https://example.com/_auth/callback"

    def test_ignores_unknown_keys(self):
        payload = json.loads(create_config_json())
        payload["extra"] = "value"
        assert ConfigBundle.model_validate(payload).client_id == "test-client-id"


class TestConfigLoader:
    """Single-initialization and failure mapping."""

    @pytest.mark.asyncio
    async def test_loads_once(self):
        store = StubParameterStore(values={PARAMETER_NAME: create_config_json()})
        loader = ConfigLoader(store, PARAMETER_NAME)

        first = await loader.load()
        second = await loader.load()

        assert first is second
        assert store.calls == 1
        assert loader.cached

    @pytest.mark.asyncio
    async def test_missing_parameter_is_unavailable(self):
        loader = ConfigLoader(StubParameterStore(), PARAMETER_NAME)

        with pytest.raises(ConfigUnavailable) as exc_info:
            await loader.load()

        assert exc_info.value.code == "CONFIG_UNAVAILABLE"
        assert exc_info.value.details["parameter"] == PARAMETER_NAME
        assert not loader.cached

    @pytest.mark.asyncio
    async def test_unreachable_store_is_unavailable(self):
        store = StubParameterStore(error=ExternalServiceError("ssm", "timeout", details={"error": "timed out"}))
        loader = ConfigLoader(store, PARAMETER_NAME)

        with pytest.raises(ConfigUnavailable) as exc_info:
            await loader.load()

        assert exc_info.value.details["error"] == "timed out"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        json.dumps({"cognitoDomain": "auth.example.com"}),
        json.dumps({**json.loads(create_config_json()), "clientSecret": ""}),
    ])
    async def test_bad_shape_is_malformed(self, raw):
        loader = ConfigLoader(StubParameterStore(values={PARAMETER_NAME: raw}), PARAMETER_NAME)

        with pytest.raises(ConfigMalformed) as exc_info:
            await loader.load()

        assert exc_info.value.code == "CONFIG_MALFORMED"

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        store = StubParameterStore()
        loader = ConfigLoader(store, PARAMETER_NAME)

        with pytest.raises(ConfigUnavailable):
            await loader.load()

        store.values[PARAMETER_NAME] = create_config_json()
        bundle = await loader.load()

        assert bundle.client_id == "test-client-id"
        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_records_load_results(self, metrics):
        store = StubParameterStore()
        loader = ConfigLoader(store, PARAMETER_NAME, metrics=metrics)

        with pytest.raises(ConfigUnavailable):
            await loader.load()
        store.values[PARAMETER_NAME] = create_config_json()
        await loader.load()

        assert metrics.sample_value("edge_auth_config_loads_total", {"result": "unavailable"}) == 1
        assert metrics.sample_value("edge_auth_config_loads_total", {"result": "ok"}) == 1
