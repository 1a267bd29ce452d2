# tlsguard/scanner/base.py
"""
Base classes for the TLS compliance probes.

Architecture:
    Endpoint + TLSPolicy flow through:  Probe → Classifier → TLSProbeResult

BaseProbe:   Performs handshakes against one endpoint (directly, or through an
             external tool in a remote context) and collects the evidence.
             Probes NEVER decide what evidence means on their own. Every
             failure is handed to the classifier in
             tlsguard.scanner.analyzers.tls_classifier, so both probes reach
             the same verdict for the same underlying behaviour.

TLSProbeResult is the only thing a probe returns. Connectivity problems,
rejections and unparseable output are all data here, never exceptions.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from tlsguard.policy.models import TLSPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TLSProbeResult:
    """
    Verdict for one endpoint under one policy.

    Fields:
        compliant:          Does the endpoint honor the policy? Unreachable and
                            non-TLS endpoints are compliant (informational).
        is_tls:             Did the endpoint speak TLS at all?
        reachable:          Could a connection be made?
        negotiated_version: Display form of the version seen, e.g. "TLS 1.2",
                            "< TLS 1.2" when the minimum was refused. None when
                            no handshake got that far.
        reason:             Explanation for the report.
        probe:              Which probe produced this ("native", "exec").
        duration_seconds:   Wall-clock time of the probe.
    """
    compliant: bool
    is_tls: bool
    reachable: bool
    reason: str
    negotiated_version: Optional[str] = None
    probe: str = ""
    duration_seconds: float = 0.0

    def __post_init__(self):
        if not self.reachable and (not self.compliant or self.is_tls):
            raise ValueError("unreachable endpoint must be compliant and non-TLS")
        if self.reachable and not self.is_tls and not self.compliant:
            raise ValueError("non-TLS endpoint must be compliant")

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------

class BaseProbe(ABC):
    """
    Abstract base for TLS compliance probes.

    To create a new probe:
        1. Subclass BaseProbe
        2. Set the `name` property (e.g., "native", "exec")
        3. Implement `execute(address, port, policy) -> TLSProbeResult`

    The base class handles automatically:
        - Timing (duration_seconds is set automatically)
        - Error catching (an unexpected exception becomes an inconclusive,
          unreachable result so the run continues)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    def run(self, address: str, port: int, policy: TLSPolicy) -> TLSProbeResult:
        """
        Execute the probe with automatic timing and error handling.

        DO NOT OVERRIDE THIS METHOD. Override `execute()` instead.
        """
        start = time.monotonic()
        try:
            result = self.execute(address, port, policy)
        except Exception as e:
            logger.exception(f"Probe '{self.name}' failed for {address}:{port}")
            result = TLSProbeResult(
                compliant=True,
                is_tls=False,
                reachable=False,
                reason=f"probe inconclusive: {type(e).__name__}: {e}",
            )

        return dataclasses.replace(
            result,
            probe=self.name,
            duration_seconds=round(time.monotonic() - start, 2),
        )

    @abstractmethod
    def execute(self, address: str, port: int, policy: TLSPolicy) -> TLSProbeResult:
        """
        Probe one endpoint. Override this in subclasses.

        Args:
            address: IP address or hostname. IPv6 literals are fine.
            port:    TCP port.
            policy:  The resolved, immutable policy.
        """
        ...
