# tlsguard/scanner/engines/__init__.py
"""
TLS probes.
Each probe performs handshakes against one endpoint and hands failures to
the shared classifier. Probes do NOT interpret evidence on their own.
"""
from tlsguard.scanner.engines.native_probe import NativeProbe, probe_tls
from tlsguard.scanner.engines.exec_probe import ExecProbe, probe_tls_via_exec

# Registry of all available probes, in the order the orchestrator tries them.
ALL_PROBES = {
    "native": NativeProbe,
    "exec": ExecProbe,
}

__all__ = [
    "NativeProbe", "ExecProbe",
    "probe_tls", "probe_tls_via_exec",
    "ALL_PROBES",
]
