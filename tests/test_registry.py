"""Tests for Consul registration."""

import json

import httpx

from app.services.registry import ServiceRegistry
from tests.fakes import make_settings


def registry_settings(**overrides):
    values = {"service_registry_url": "http://consul:8500", "service_address": "10.0.0.5", "port": 3000}
    values.update(overrides)
    return make_settings(**values)


class TestServiceRegistry:
    def test_registration_payload(self):
        registry = ServiceRegistry(registry_settings(), hostname="node-1")
        payload = registry.registration()
        assert payload["ID"] == "user-service-node-1"
        assert payload["Name"] == "user-service"
        assert payload["Port"] == 3000
        assert payload["Check"] == {"HTTP": "http://10.0.0.5:3000/health", "Interval": "15s", "Timeout": "5s"}

    def test_register_and_deregister(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        registry = ServiceRegistry(registry_settings(), transport=httpx.MockTransport(handler), hostname="node-1")
        assert registry.register()
        assert registry.deregister()
        assert [r.method for r in requests] == ["PUT", "PUT"]
        assert requests[0].url.path == "/v1/agent/service/register"
        assert json.loads(requests[0].content)["ID"] == "user-service-node-1"
        assert requests[1].url.path == "/v1/agent/service/deregister/user-service-node-1"

    def test_disabled_without_registry_url(self):
        def handler(request):
            raise AssertionError("no request expected")

        registry = ServiceRegistry(make_settings(), transport=httpx.MockTransport(handler), hostname="node-1")
        assert not registry.enabled
        assert not registry.register()
        assert not registry.deregister()

    def test_registry_error_is_not_fatal(self):
        registry = ServiceRegistry(
            registry_settings(),
            transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
            hostname="node-1",
        )
        assert not registry.register()
