# tlsguard/scanner/orchestrator.py
"""
Compliance Orchestrator: probes every endpoint and sorts the verdicts.

For each endpoint the enumerator supplies:

    1. Run the native probe
    2. If it could not reach the endpoint, retry once with the exec probe
       through the first exec context the executor offers
    3. If still unreachable, record it as compliant (informational)
    4. Emit one ReportRecord into the compliant or non-compliant list

Probes never raise (BaseProbe.run turns surprises into inconclusive results),
so one misbehaving endpoint cannot abort the run. The orchestrator keeps no
per-endpoint state, so callers may fan endpoints out across threads.

Usage:
    from tlsguard.scanner import check_service_tls_compliance

    compliant, non_compliant = check_service_tls_compliance(policy, enumerator, executor)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from tlsguard.executors import RemoteExecutor
from tlsguard.policy.models import TLSPolicy
from tlsguard.scanner.base import TLSProbeResult
from tlsguard.scanner.engines import ExecProbe, NativeProbe
from tlsguard.targets import ServiceEndpoint, TargetEnumerator

logger = logging.getLogger(__name__)


@dataclass
class ReportRecord:
    """One endpoint's line in the compliance report."""
    reason: str
    compliant: bool
    namespace: str
    service_name: str
    port: int
    protocol: str = "TCP"
    tls_version: Optional[str] = None
    object_type: str = "Service"

    @classmethod
    def from_result(cls, endpoint: ServiceEndpoint, result: TLSProbeResult) -> "ReportRecord":
        return cls(
            reason=result.reason,
            compliant=result.compliant,
            namespace=endpoint.namespace,
            service_name=endpoint.service_name,
            port=endpoint.port,
            protocol=endpoint.protocol,
            tls_version=result.negotiated_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "objectType": self.object_type,
            "namespace": self.namespace,
            "serviceName": self.service_name,
            "portNumber": self.port,
            "portProtocol": self.protocol,
            "compliant": self.compliant,
            "reason": self.reason,
        }
        if self.tls_version:
            data["tlsVersion"] = self.tls_version
        return data


class ComplianceOrchestrator:
    """
    Stateless. Create once, call execute() per run.

    Args:
        native_config: config dict for NativeProbe (e.g. {"timeout": 5})
        exec_config:   config dict for ExecProbe (e.g. {"exec_timeout": 5})
    """

    def __init__(self, native_config: Optional[Dict[str, Any]] = None, exec_config: Optional[Dict[str, Any]] = None):
        self.native_config = native_config or {}
        self.exec_config = exec_config or {}

    def execute(
        self,
        policy: TLSPolicy,
        enumerator: TargetEnumerator,
        executor: Optional[RemoteExecutor] = None,
    ) -> Tuple[List[ReportRecord], List[ReportRecord]]:
        compliant: List[ReportRecord] = []
        non_compliant: List[ReportRecord] = []

        endpoints = enumerator.list_endpoints()
        logger.info(
            f"Checking {len(endpoints)} endpoint(s) against {policy.profile_type.value} "
            f"profile (min {policy.min_version.label})"
        )

        native = NativeProbe(self.native_config)
        exec_probe = self._exec_probe(executor)

        for endpoint in endpoints:
            result = self.probe_endpoint(endpoint, policy, native, exec_probe)
            record = ReportRecord.from_result(endpoint, result)
            if record.compliant:
                compliant.append(record)
            else:
                non_compliant.append(record)

        logger.info(f"TLS compliance: {len(compliant)} compliant, {len(non_compliant)} non-compliant")
        return compliant, non_compliant

    def probe_endpoint(
        self,
        endpoint: ServiceEndpoint,
        policy: TLSPolicy,
        native: NativeProbe,
        exec_probe: Optional[ExecProbe] = None,
    ) -> TLSProbeResult:
        target = f"{endpoint.namespace}/{endpoint.service_name} {endpoint.address}:{endpoint.port}"

        # --- 1. Native probe ---
        result = native.run(endpoint.address, endpoint.port, policy)
        logger.info(f"Native probe {target}: {result.reason} ({result.duration_seconds}s)")

        # --- 2. Exec fallback ---
        if not result.reachable:
            if exec_probe is None:
                logger.info(f"No exec context available, cannot retry {target}")
            else:
                result = exec_probe.run(endpoint.address, endpoint.port, policy)
                logger.info(f"Exec probe {target}: {result.reason} ({result.duration_seconds}s)")

        # --- 3. Still unreachable: nothing to validate ---
        # TLSProbeResult guarantees unreachable results are compliant.
        # TODO: decide with product owners whether this should be reported as
        # "not applicable, recheck connectivity" instead of a pass.
        return result

    def _exec_probe(self, executor: Optional[RemoteExecutor]) -> Optional[ExecProbe]:
        if executor is None:
            return None
        contexts = executor.available_contexts()
        if not contexts:
            return None
        logger.debug(f"Exec fallback will use {contexts[0]}")
        return ExecProbe(executor, contexts[0], self.exec_config)


def check_service_tls_compliance(
    policy: TLSPolicy,
    enumerator: TargetEnumerator,
    executor: Optional[RemoteExecutor] = None,
) -> Tuple[List[ReportRecord], List[ReportRecord]]:
    """Probe every endpoint; returns (compliant, non_compliant) report records."""
    return ComplianceOrchestrator().execute(policy, enumerator, executor)
