# tlsguard/targets.py
"""
Target Enumerator: the endpoints to probe.

The compliance check does no discovery. It probes exactly what an enumerator
returns. Headless services and non-TCP ports are dropped here, at the
boundary, when building endpoints from Kubernetes Service objects.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceEndpoint:
    namespace: str
    service_name: str
    address: str
    port: int
    protocol: str = "TCP"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServiceEndpoint":
        return cls(
            namespace=str(data.get("namespace") or ""),
            service_name=str(data.get("service") or data.get("service_name") or ""),
            address=str(data["address"]),
            port=int(data["port"]),
            protocol=str(data.get("protocol") or "TCP").upper(),
        )


def _is_headless(cluster_ip: Any) -> bool:
    return cluster_ip in (None, "", "None")


def endpoints_from_services(services: Iterable[Mapping[str, Any]]) -> List[ServiceEndpoint]:
    """
    Build probe endpoints from Kubernetes Service objects.

    Headless services (no ClusterIP) and non-TCP ports are skipped. A port
    without a protocol is TCP, as in the Kubernetes API.
    """
    endpoints: List[ServiceEndpoint] = []

    for svc in services:
        metadata = svc.get("metadata") or {}
        spec = svc.get("spec") or {}
        namespace = metadata.get("namespace", "")
        name = metadata.get("name", "")
        cluster_ip = spec.get("clusterIP")

        if _is_headless(cluster_ip):
            logger.info(f"Skipping headless service {namespace}/{name}")
            continue

        for port in spec.get("ports") or []:
            protocol = str(port.get("protocol") or "TCP").upper()
            if protocol != "TCP":
                logger.info(f"Skipping {protocol} port {port.get('port')} on {namespace}/{name}")
                continue
            endpoints.append(ServiceEndpoint(
                namespace=namespace,
                service_name=name,
                address=cluster_ip,
                port=int(port["port"]),
                protocol=protocol,
            ))

    return endpoints


class TargetEnumerator(ABC):
    @abstractmethod
    def list_endpoints(self) -> List[ServiceEndpoint]:
        ...


class StaticTargetEnumerator(TargetEnumerator):
    """A fixed endpoint list, trusted as-is."""

    def __init__(self, endpoints: Iterable[ServiceEndpoint]):
        self._endpoints = list(endpoints)

    @classmethod
    def from_services(cls, services: Iterable[Mapping[str, Any]]) -> "StaticTargetEnumerator":
        return cls(endpoints_from_services(services))

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "StaticTargetEnumerator":
        endpoints = []
        for item in items:
            endpoint = ServiceEndpoint.from_dict(item)
            if endpoint.protocol != "TCP":
                logger.info(f"Skipping {endpoint.protocol} endpoint {endpoint.address}:{endpoint.port}")
                continue
            endpoints.append(endpoint)
        return cls(endpoints)

    def list_endpoints(self) -> List[ServiceEndpoint]:
        return list(self._endpoints)
