"""
Network Diagnostics Service

Checks Kubernetes DNS-based service discovery from inside the pod:
- resolves ``<service>.<namespace>.svc.cluster.local`` names
- probes HTTP reachability of sibling services
- confirms the database answers a trivial query

Usage:
    diagnostics = NetworkDiagnostics()
    report = await diagnostics.run(db)
"""

import asyncio
import logging
import socket
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.core.config import Settings, get_settings
from feastflow.database import ping_db

logger = logging.getLogger(__name__)

CLUSTER_DOMAIN = "cluster.local"

Resolver = Callable[[str], Awaitable[str]]


@dataclass
class ServiceTest:
    """Outcome of resolving (and optionally reaching) one service."""
    service: str
    dns_name: str
    resolved: bool = False
    ip_address: Optional[str] = None
    reachable: Optional[bool] = None
    response_time_ms: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """camelCase view, unset fields omitted."""
        keys = {
            "dns_name": "dnsName",
            "ip_address": "ipAddress",
            "response_time_ms": "responseTimeMs",
        }
        return {keys.get(k, k): v for k, v in asdict(self).items() if v is not None}


@dataclass
class ProbeResult:
    reachable: bool
    response_time_ms: float
    error: Optional[str] = None


@dataclass
class DiagnosticsReport:
    timestamp: str
    pod_name: str
    namespace: str
    tests: list[ServiceTest] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "podName": self.pod_name,
            "namespace": self.namespace,
            "tests": [t.to_dict() for t in self.tests],
            "kubernetesServiceDiscovery": {
                "explanation": (
                    "Kubernetes provides automatic DNS-based service discovery. "
                    "Services are accessible via DNS names instead of hardcoded IPs."
                ),
                "dnsFormat": "<service-name>.<namespace>.svc.cluster.local",
                "clusterDomain": CLUSTER_DOMAIN,
            },
        }


async def system_resolver(hostname: str) -> str:
    """Resolve a hostname to its first IPv4 address."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, family=socket.AF_INET)
    return infos[0][4][0]


class NetworkDiagnostics:
    """Service discovery and connectivity checks."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Resolver = system_resolver,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = resolver
        self.transport = transport

    def fqdn(self, service: str) -> str:
        return f"{service}.{self.settings.namespace}.svc.{CLUSTER_DOMAIN}"

    async def resolve(self, service: str, dns_name: Optional[str] = None) -> ServiceTest:
        """Resolve a service name; the fully-qualified cluster name by default."""
        dns_name = dns_name or self.fqdn(service)
        test = ServiceTest(service=service, dns_name=dns_name)
        try:
            test.ip_address = await self.resolver(dns_name)
            test.resolved = True
            logger.info(f"✓ DNS resolution successful: {dns_name} -> {test.ip_address}")
        except OSError as e:
            test.error = str(e)
            logger.warning(f"✗ DNS resolution failed for {dns_name}: {e}")
        return test

    async def probe_http(self, host: str, port: int, path: str = "/") -> ProbeResult:
        """Issue a GET and report whether any HTTP response came back."""
        url = f"http://{host}:{port}{path}"
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.probe_timeout_seconds,
                transport=self.transport,
            ) as client:
                await client.get(url)
        except httpx.TimeoutException:
            return ProbeResult(False, self._elapsed(start), "Request timeout")
        except httpx.HTTPError as e:
            return ProbeResult(False, self._elapsed(start), str(e))
        return ProbeResult(True, self._elapsed(start))

    @staticmethod
    def _elapsed(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)

    async def _check_service(self, service: str, port: int, path: str) -> ServiceTest:
        test = await self.resolve(service)
        if test.resolved:
            probe = await self.probe_http(test.dns_name, port, path)
            test.reachable = probe.reachable
            test.response_time_ms = probe.response_time_ms
            if not probe.reachable:
                test.error = probe.error
        return test

    async def run(self, db: AsyncSession) -> DiagnosticsReport:
        """Run every discovery and connectivity test."""
        settings = self.settings
        report = DiagnosticsReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            pod_name=settings.pod_name,
            namespace=settings.namespace,
        )
        logger.info(f"Running network diagnostics from pod {report.pod_name} ({report.namespace})")

        # Database
        db_test = await self.resolve("postgres")
        if db_test.resolved:
            try:
                db_test.response_time_ms = await ping_db(db)
                db_test.reachable = True
            except SQLAlchemyError as e:
                db_test.reachable = False
                db_test.error = "DNS resolved but connection failed"
                logger.error(f"✗ PostgreSQL connection failed: {e}")
        report.tests.append(db_test)

        report.tests.append(await self._check_service(
            settings.backend_service_name, settings.backend_service_port, "/api/health"
        ))
        report.tests.append(await self._check_service(
            settings.frontend_service_name, settings.frontend_service_port, "/"
        ))

        # Short-form name, resolvable only inside the same namespace
        report.tests.append(await self.resolve("postgres (short form)", dns_name="postgres"))

        return report

    def service_discovery_info(self) -> dict[str, Any]:
        """Describe the cluster services and how this backend reaches them."""
        settings = self.settings

        def service(name: str, port: int, purpose: str) -> dict[str, Any]:
            return {
                "name": name,
                "type": "ClusterIP",
                "port": port,
                "dns": {"shortForm": name, "fqdn": self.fqdn(name)},
                "purpose": purpose,
            }

        return {
            "namespace": settings.namespace,
            "services": [
                service("postgres", settings.db_port,
                        "PostgreSQL database service - provides persistent data storage"),
                service(settings.backend_service_name, settings.backend_service_port,
                        "Backend API service - handles business logic and data operations"),
                service(settings.frontend_service_name, settings.frontend_service_port,
                        "Frontend web service - serves the user interface"),
            ],
            "configuredConnections": {
                "backend → postgres": {
                    "method": "DNS-based service discovery",
                    "host": settings.db_host,
                    "port": settings.db_port,
                    "configured": True,
                },
                "frontend → backend": {
                    "method": "DNS-based service discovery",
                    "url": f"http://{settings.backend_service_name}:{settings.backend_service_port}",
                    "configured": True,
                },
            },
            "kubernetesNetworking": {
                "clusterDomain": CLUSTER_DOMAIN,
                "dnsService": "kube-dns / CoreDNS",
            },
        }
