# tlsguard/scanner/analyzers/tls_classifier.py
"""
Result classifier shared by the native and exec probes.

Pure functions only: no sockets, no subprocesses. Both probes hand their raw
evidence here (an exception message from the local TLS stack, or an
`openssl s_client` transcript) and build their verdicts with the helpers at
the bottom, so equivalent evidence always produces the same result.

Precedence applied by classify_evidence():
    0. The local client could not even offer the handshake
       ("no protocols available", unknown tool option)   → UNREACHABLE
    1. Connection-level failure (refused, timed out, no route)
                                                          → UNREACHABLE
    2. TLS rejection (an SSL alert, "handshake failure")  → TLS_REJECTED
    3. A connection was made but nothing TLS came back
       (CONNECTED(...), EOF, "wrong version number",
       "packet length too long", ...)                     → NON_TLS
    4. Nothing recognizable                               → UNREACHABLE

Rule 2 runs before rule 3. Servers often close right after sending a
protocol_version alert, and the resulting error text can also look like an
EOF. Rejection evidence wins.

A transcript's "Protocol: TLSv1.2" line is NOT evidence of success: openssl
prints the attempted version even when the handshake failed. Success needs
that line and no failure marker ("Cipher is (NONE)" included).

OpenSSL 3.0 prints the TLS 1.3 "Protocol" line only along with a session
ticket, which `echo |` often closes stdin before. The session summary
("New, TLSv1.3, Cipher is TLS_AES_256_GCM_SHA384") is then the only success
evidence. Its version field is the cipher suite's version ("New, SSLv3,
Cipher is AES128-SHA" on a TLS 1.2 session), so it only identifies the
protocol for TLS 1.3 suites.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Tuple

from tlsguard import config as settings
from tlsguard.policy.models import TLSPolicy, TLSVersion
from tlsguard.scanner.base import TLSProbeResult


class Evidence(str, Enum):
    UNREACHABLE = "unreachable"
    TLS_REJECTED = "tls_rejected"
    NON_TLS = "non_tls"


# ---------------------------------------------------------------------------
# Markers (matched case-insensitively)
# ---------------------------------------------------------------------------

LOCAL_STACK_MARKERS = (
    "no protocols available",
    "no ciphers available",
    "no cipher can be selected",
    "no cipher match",
    "unknown option",
)

CONNECTION_FAILURE_MARKERS = (
    "connect:errno=",
    "connection refused",
    "timed out",
    "no route to host",
    "network is unreachable",
    "name or service not known",
    "temporary failure in name resolution",
)

TLS_REJECTION_MARKERS = (
    "tlsv1 alert",
    "tlsv13 alert",
    "sslv3 alert",
    "ssl alert number",
    "alert protocol version",
    "alert handshake failure",
    "handshake failure",
    "unsupported protocol",
)

# Handshake did not complete. Not by itself proof the peer speaks TLS.
HANDSHAKE_INCOMPLETE_MARKERS = TLS_REJECTION_MARKERS + (
    "cipher is (none)",
    "no ciphers available",
    "no protocols available",
)

NON_TLS_MARKERS = (
    "connected(",
    "errno=",
    "wrong version number",
    "packet length too long",
    "record layer failure",
    "http request",
    "eof",
    "first record does not look like a tls handshake",
    "oversized record",
)

# What a real openssl run leaves behind, as opposed to a shell error
TOOL_OUTPUT_MARKERS = ("CONNECTED", "errno", "SSL", "Cipher")

_PROTOCOL_LINE_RE = re.compile(r"^\s*Protocol\s*:\s*(\S+)\s*$", re.MULTILINE)
_CIPHER_LINE_RE = re.compile(r"^\s*Cipher\s*:\s*(\S+)\s*$", re.MULTILINE)
_SESSION_SUMMARY_RE = re.compile(r"^New, (\S+), Cipher is (\S+)\s*$", re.MULTILINE)


def _contains_any(text: str, markers) -> bool:
    lowered = text.lower()
    return any(m in lowered for m in markers)


# ---------------------------------------------------------------------------
# Evidence inspection
# ---------------------------------------------------------------------------

def describe_error(exc: BaseException) -> str:
    """Text of a local TLS/socket exception, as fed to classify_evidence()."""
    text = str(exc).strip()
    return text or type(exc).__name__


def truncate(text: str, limit: int = settings.REASON_TRUNCATE_LEN) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def is_local_stack_error(text: str) -> bool:
    return _contains_any(text or "", LOCAL_STACK_MARKERS)


def is_connection_failure(text: str) -> bool:
    return _contains_any(text or "", CONNECTION_FAILURE_MARKERS)


def has_rejection_marker(text: str) -> bool:
    """True when the handshake visibly did not complete."""
    return _contains_any(text or "", HANDSHAKE_INCOMPLETE_MARKERS)


def has_tool_output(text: str) -> bool:
    return any(m in (text or "") for m in TOOL_OUTPUT_MARKERS)


def classify_evidence(text: str) -> Evidence:
    """Map raw failure evidence to an Evidence class. See module docstring."""
    text = text or ""
    if is_local_stack_error(text):
        return Evidence.UNREACHABLE
    if is_connection_failure(text):
        return Evidence.UNREACHABLE
    if _contains_any(text, TLS_REJECTION_MARKERS):
        return Evidence.TLS_REJECTED
    if _contains_any(text, NON_TLS_MARKERS):
        return Evidence.NON_TLS
    return Evidence.UNREACHABLE


def transcript_protocols(text: str) -> List[str]:
    """Every protocol name reported on a `Protocol:` line."""
    return _PROTOCOL_LINE_RE.findall(text or "")


def completed_suites(text: str) -> List[Tuple[str, str]]:
    """(suite version, cipher) from every session summary of a finished handshake."""
    return [
        (suite_version, cipher)
        for suite_version, cipher in _SESSION_SUMMARY_RE.findall(text or "")
        if cipher != "(NONE)"
    ]


def transcript_version(text: str) -> Optional[TLSVersion]:
    """The version a successful transcript negotiated, if any."""
    if has_rejection_marker(text):
        return None
    for name in transcript_protocols(text):
        version = TLSVersion.from_protocol_name(name)
        if version is not None:
            return version
    # Ticket-less TLS 1.3: only the session summary is printed
    for suite_version, _ in completed_suites(text):
        if suite_version == TLSVersion.TLS1_3.openssl_name:
            return TLSVersion.TLS1_3
    return None


def transcript_negotiated(text: str, version: TLSVersion) -> bool:
    """Did this transcript complete a handshake at exactly ``version``?"""
    return transcript_version(text) is version


def extract_tool_cipher(text: str) -> str:
    """Negotiated cipher from a transcript, or "unknown"."""
    for name in _CIPHER_LINE_RE.findall(text or ""):
        if name not in ("0000", "(NONE)"):
            return name
    for _, name in completed_suites(text):
        return name
    return "unknown"


def evidence_line(text: str) -> str:
    """The most telling line of a transcript, for use in a reason."""
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    for markers in (CONNECTION_FAILURE_MARKERS, TLS_REJECTION_MARKERS, LOCAL_STACK_MARKERS, NON_TLS_MARKERS):
        for line in lines:
            if _contains_any(line, markers):
                return truncate(line)
    return truncate(lines[0]) if lines else "no output"


# ---------------------------------------------------------------------------
# Verdict builders
# ---------------------------------------------------------------------------

def _via(via: str) -> str:
    return f" (via {via})" if via else ""


def unreachable_result(reason: str) -> TLSProbeResult:
    return TLSProbeResult(compliant=True, is_tls=False, reachable=False, reason=reason)


def non_tls_result(via: str = "") -> TLSProbeResult:
    return TLSProbeResult(
        compliant=True,
        is_tls=False,
        reachable=True,
        reason=f"non-TLS service (informational){_via(via)}",
    )


def min_version_verdict(evidence: Evidence, policy: TLSPolicy, detail: str, via: str = "") -> TLSProbeResult:
    """Verdict for a failed handshake at the policy's minimum version."""
    if evidence is Evidence.NON_TLS:
        return non_tls_result(via)

    if evidence is Evidence.TLS_REJECTED:
        minimum = policy.min_version.label
        return TLSProbeResult(
            compliant=False,
            is_tls=True,
            reachable=True,
            negotiated_version=f"< {minimum}",
            reason=(
                f"server does not support {minimum} "
                f"(minimum required by {policy.profile_type.value} profile){_via(via)}: {truncate(detail)}"
            ),
        )

    if is_connection_failure(detail):
        return unreachable_result(f"port unreachable: {truncate(detail)}{_via(via)}")
    return unreachable_result(f"probe inconclusive: {truncate(detail)}{_via(via)}")


def version_rejected_result(version: TLSVersion, policy: TLSPolicy, detail: str, via: str = "") -> TLSProbeResult:
    """A version above the minimum failed. The profile requires all of them."""
    return TLSProbeResult(
        compliant=False,
        is_tls=True,
        reachable=True,
        negotiated_version=policy.min_version.label,
        reason=(
            f"server rejected {version.label} (required by {policy.profile_type.value} profile)"
            f"{_via(via)}: {truncate(detail)}"
        ),
    )


def downgrade_result(negotiated: str, policy: TLSPolicy, via: str = "") -> TLSProbeResult:
    return TLSProbeResult(
        compliant=False,
        is_tls=True,
        reachable=True,
        negotiated_version=negotiated,
        reason=(
            f"server accepts {negotiated} "
            f"({policy.min_version.label} minimum required by {policy.profile_type.value} profile){_via(via)}"
        ),
    )


def floor_enforced_result(policy: TLSPolicy, via: str = "") -> TLSProbeResult:
    """Nothing below the minimum was accepted. Compliant so far."""
    minimum = policy.min_version.label
    return TLSProbeResult(
        compliant=True,
        is_tls=True,
        reachable=True,
        negotiated_version=minimum,
        reason=f"server enforces {minimum} minimum{_via(via)}",
    )


def cipher_accepted_result(cipher: str, policy: TLSPolicy, via: str = "") -> TLSProbeResult:
    return TLSProbeResult(
        compliant=False,
        is_tls=True,
        reachable=True,
        negotiated_version=TLSVersion.TLS1_2.label,
        reason=f"server accepted disallowed cipher {cipher} (not in {policy.profile_type.value} profile){_via(via)}",
    )


def compliant_result(policy: TLSPolicy, via: str = "") -> TLSProbeResult:
    return TLSProbeResult(
        compliant=True,
        is_tls=True,
        reachable=True,
        negotiated_version=policy.min_version.label,
        reason=f"server honors {policy.profile_type.value} profile (min {policy.min_version.label}){_via(via)}",
    )
