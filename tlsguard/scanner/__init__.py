# tlsguard/scanner/__init__.py
from tlsguard.scanner.base import BaseProbe, TLSProbeResult
from tlsguard.scanner.orchestrator import (
    ComplianceOrchestrator,
    ReportRecord,
    check_service_tls_compliance,
)

__all__ = [
    "BaseProbe", "TLSProbeResult",
    "ComplianceOrchestrator", "ReportRecord", "check_service_tls_compliance",
]
