"""Tests for the endpoint registry."""

import pytest

from notifier.registry import EndpointRegistry, InvalidEndpoint, build_endpoint


class TestBuildEndpoint:
    def test_valid_endpoint(self):
        endpoint = build_endpoint(" https://fcm.googleapis.com/fcm/send/abc ", "pk", "secret", "4521")

        assert endpoint.endpoint == "https://fcm.googleapis.com/fcm/send/abc"
        assert endpoint.owner_id == "4521"

    @pytest.mark.parametrize(
        "endpoint",
        [None, "", "   ", 42, "not a url", "ftp://push.example/a", "https:///missing-host"],
    )
    def test_malformed_endpoint_rejected(self, endpoint):
        with pytest.raises(InvalidEndpoint):
            build_endpoint(endpoint, "pk", "secret")

    @pytest.mark.parametrize("p256dh,auth", [("", "secret"), ("pk", ""), (None, "secret"), ("pk", 7)])
    def test_missing_keys_rejected(self, p256dh, auth):
        with pytest.raises(InvalidEndpoint, match="keys"):
            build_endpoint("https://push.example/a", p256dh, auth)

    def test_non_string_owner_rejected(self):
        with pytest.raises(InvalidEndpoint, match="ownerId"):
            build_endpoint("https://push.example/a", "pk", "secret", owner_id=4521)


class TestEndpointRegistry:
    def test_subscribe_and_list(self, registry):
        registry.subscribe("https://push.example/a", "pk", "secret", owner_id="4521")
        registry.subscribe("https://push.example/b", "pk", "secret")

        assert {e.endpoint for e in registry.list_all()} == {
            "https://push.example/a",
            "https://push.example/b",
        }
        assert [e.endpoint for e in registry.list_by_owner("4521")] == ["https://push.example/a"]

    def test_resubscribe_refreshes_keys_and_owner(self, registry):
        registry.subscribe("https://push.example/a", "old", "old", owner_id="1")
        registry.subscribe("https://push.example/a", "new", "new", owner_id="2")

        endpoints = registry.list_all()
        assert len(endpoints) == 1
        assert (endpoints[0].p256dh, endpoints[0].auth, endpoints[0].owner_id) == ("new", "new", "2")

    def test_invalid_subscribe_writes_nothing(self, registry):
        with pytest.raises(InvalidEndpoint):
            registry.subscribe("https://push.example/a", "", "secret")

        assert registry.list_all() == []

    def test_unsubscribe_is_idempotent(self, registry):
        registry.subscribe("https://push.example/a", "pk", "secret")

        assert registry.unsubscribe("https://push.example/a") is True
        assert registry.unsubscribe("https://push.example/a") is False
        assert registry.list_all() == []

    def test_resolve(self, registry):
        registry.subscribe("https://push.example/a", "pk", "s", owner_id="X")
        registry.subscribe("https://push.example/b", "pk", "s", owner_id="Y")

        assert len(registry.resolve()) == 2
        assert [e.endpoint for e in registry.resolve("Y")] == ["https://push.example/b"]
        assert registry.resolve("Z") == []

    def test_separate_registries_share_the_database(self, database):
        EndpointRegistry(database).subscribe("https://push.example/a", "pk", "s")

        assert len(EndpointRegistry(database).list_all()) == 1
