# tlsguard/config.py
"""
Runtime settings read from the environment.

Everything here has a safe default so the probes work with no configuration
at all. Probes also take a per-instance ``config`` dict, which wins over
these values:

    {"timeout": 5, "exec_timeout": 5, "openssl_bin": "openssl"}

Environment variables:
    TLSGUARD_ENV            "production" switches logging to INFO
    TLSGUARD_DIAL_TIMEOUT   seconds per native handshake attempt (default 5)
    TLSGUARD_EXEC_TIMEOUT   seconds for the shell-level `timeout` wrapping
                            each openssl invocation (default 5)
    TLSGUARD_OPENSSL_BIN    openssl binary inside the exec context
    TLSGUARD_KUBECTL_BIN    kubectl binary on the operator host
    TLSGUARD_EXEC_MODE      exec fallback used by the API: unset (off),
                            "local" or "kubectl"
    TLSGUARD_EXEC_CONTEXTS  kubectl exec targets, comma separated
                            "namespace/pod/container" entries
"""

from __future__ import annotations

import os
import shutil
from typing import Optional


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


ENVIRONMENT = os.getenv("TLSGUARD_ENV", "development")

DIAL_TIMEOUT = _float_env("TLSGUARD_DIAL_TIMEOUT", 5.0)
EXEC_TIMEOUT = int(_float_env("TLSGUARD_EXEC_TIMEOUT", 5.0))
OPENSSL_BIN = os.getenv("TLSGUARD_OPENSSL_BIN", "openssl")

# Exec fallback for /tls/check. Never taken from the request.
EXEC_MODE = os.getenv("TLSGUARD_EXEC_MODE", "").strip().lower()
EXEC_CONTEXTS = os.getenv("TLSGUARD_EXEC_CONTEXTS", "")

# Extra seconds the executor waits on top of the remote `timeout`
EXEC_GRACE_SECONDS = 10

# Tool output quoted in a reason is cut to this many characters
REASON_TRUNCATE_LEN = 200


def is_production() -> bool:
    return ENVIRONMENT.lower() == "production"


def find_kubectl_binary() -> Optional[str]:
    """Find the kubectl binary on the operator host."""
    configured = os.getenv("TLSGUARD_KUBECTL_BIN")
    if configured:
        return configured

    binary = shutil.which("kubectl") or shutil.which("oc")
    if binary:
        return binary

    common_paths = [
        "/usr/local/bin/kubectl",
        "/usr/bin/kubectl",
        os.path.expanduser("~/.local/bin/kubectl"),
    ]
    for path in common_paths:
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path

    return None
