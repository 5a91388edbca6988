"""Tests for cluster network diagnostics with a fake resolver and mocked HTTP."""

import httpx
import pytest

from feastflow.core.config import Settings
from feastflow.dependencies import get_network_diagnostics
from feastflow.main import app
from feastflow.services.network import NetworkDiagnostics


NAMESPACE = "feastflow"


def fake_resolver(table):
    async def resolve(hostname):
        if hostname in table:
            return table[hostname]
        raise OSError(f"getaddrinfo ENOTFOUND {hostname}")
    return resolve


@pytest.fixture
def settings():
    return Settings(namespace=NAMESPACE, probe_timeout_seconds=0.5)


@pytest.fixture
def all_resolvable():
    return {
        f"postgres.{NAMESPACE}.svc.cluster.local": "10.0.0.10",
        f"feastflow-backend.{NAMESPACE}.svc.cluster.local": "10.0.0.11",
        f"feastflow-frontend.{NAMESPACE}.svc.cluster.local": "10.0.0.12",
        "postgres": "10.0.0.10",
    }


def ok_transport():
    return httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))


class TestResolve:

    async def test_fqdn_format(self, settings):
        diagnostics = NetworkDiagnostics(settings=settings)

        assert diagnostics.fqdn("postgres") == "postgres.feastflow.svc.cluster.local"

    async def test_resolved(self, settings, all_resolvable):
        diagnostics = NetworkDiagnostics(settings=settings, resolver=fake_resolver(all_resolvable))

        test = await diagnostics.resolve("postgres")

        assert test.resolved is True
        assert test.ip_address == "10.0.0.10"
        assert test.error is None

    async def test_resolution_failure_is_reported(self, settings):
        diagnostics = NetworkDiagnostics(settings=settings, resolver=fake_resolver({}))

        test = await diagnostics.resolve("postgres")

        assert test.resolved is False
        assert "ENOTFOUND" in test.error
        assert "ipAddress" not in test.to_dict()


class TestProbeHttp:

    async def test_any_response_counts_as_reachable(self, settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        diagnostics = NetworkDiagnostics(settings=settings, transport=transport)

        probe = await diagnostics.probe_http("backend", 5000, "/api/health")

        assert probe.reachable is True
        assert probe.response_time_ms >= 0

    async def test_timeout(self, settings):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        diagnostics = NetworkDiagnostics(settings=settings, transport=httpx.MockTransport(handler))

        probe = await diagnostics.probe_http("backend", 5000)

        assert probe.reachable is False
        assert probe.error == "Request timeout"

    async def test_connection_refused(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        diagnostics = NetworkDiagnostics(settings=settings, transport=httpx.MockTransport(handler))

        probe = await diagnostics.probe_http("backend", 5000)

        assert probe.reachable is False
        assert probe.error == "connection refused"


class TestRun:

    async def test_everything_reachable(self, settings, session, all_resolvable):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200)

        diagnostics = NetworkDiagnostics(
            settings=settings,
            resolver=fake_resolver(all_resolvable),
            transport=httpx.MockTransport(handler),
        )

        report = (await diagnostics.run(session)).to_dict()

        services = [t["service"] for t in report["tests"]]
        assert services == [
            "postgres",
            "feastflow-backend",
            "feastflow-frontend",
            "postgres (short form)",
        ]
        assert all(t["resolved"] for t in report["tests"])
        assert report["tests"][0]["reachable"] is True
        assert report["namespace"] == NAMESPACE
        assert seen == [
            f"http://feastflow-backend.{NAMESPACE}.svc.cluster.local:5000/api/health",
            f"http://feastflow-frontend.{NAMESPACE}.svc.cluster.local:3000/",
        ]

    async def test_unresolvable_services_are_not_probed(self, settings, session):
        def handler(request):
            raise AssertionError("no probe expected")

        diagnostics = NetworkDiagnostics(
            settings=settings,
            resolver=fake_resolver({}),
            transport=httpx.MockTransport(handler),
        )

        report = await diagnostics.run(session)

        assert [t.resolved for t in report.tests] == [False, False, False, False]
        assert all(t.reachable is None for t in report.tests)

    async def test_service_discovery_info(self, settings):
        info = NetworkDiagnostics(settings=settings).service_discovery_info()

        assert info["namespace"] == NAMESPACE
        assert [s["name"] for s in info["services"]] == [
            "postgres", "feastflow-backend", "feastflow-frontend",
        ]
        assert info["services"][0]["dns"]["fqdn"] == "postgres.feastflow.svc.cluster.local"


class TestNetworkRoutes:

    async def test_diagnostics_route(self, client, settings, all_resolvable):
        app.dependency_overrides[get_network_diagnostics] = lambda: NetworkDiagnostics(
            settings=settings,
            resolver=fake_resolver(all_resolvable),
            transport=ok_transport(),
        )
        try:
            response = await client.get("/api/network/diagnostics")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Kubernetes network diagnostics completed"
        tests = body["diagnostics"]["tests"]
        assert len(tests) == 4
        assert tests[1]["dnsName"] == f"feastflow-backend.{NAMESPACE}.svc.cluster.local"
        assert tests[1]["reachable"] is True
        assert "responseTimeMs" not in tests[3]

    async def test_services_route(self, client):
        response = await client.get("/api/network/services")

        assert response.status_code == 200
        assert response.json()["serviceDiscovery"]["kubernetesNetworking"]["clusterDomain"] == "cluster.local"
