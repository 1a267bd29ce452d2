# tlsguard/scanner/engines/native_probe.py
"""
Native TLS probe.

Uses Python's ssl and socket modules to dial the endpoint directly and force
specific protocol versions and cipher subsets. Certificate verification is
off throughout: only protocol and cipher negotiation is assessed.

Steps (each a separate connection):
    1. Version ladder   one handshake pinned to each version from the policy
                        minimum up to TLS 1.3. The minimum failing is
                        classified; any higher version failing is
                        non-compliant.
    2. Downgrade check  a handshake allowing anything up to the version just
                        below the minimum. Success is non-compliant.
    3. Cipher check     (min <= TLS 1.2 only) a TLS 1.2 handshake offering
                        only ciphers the policy does not allow. Success is
                        non-compliant and names the cipher.

A failure caused by the local OpenSSL build (it cannot offer TLS 1.0, say)
says nothing about the server. At the minimum it gives an inconclusive
result so the exec probe gets a turn; later it just skips that attempt.

Profile config options:
    timeout: float - per-connection timeout in seconds (default 5)
"""

from __future__ import annotations

import logging
import socket
import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tlsguard import config as settings
from tlsguard.policy.ciphers import compute_disallowed_ciphers, native_cipher_name
from tlsguard.policy.models import TLSPolicy, TLSVersion
from tlsguard.scanner.analyzers import tls_classifier as classifier
from tlsguard.scanner.base import BaseProbe, TLSProbeResult

logger = logging.getLogger(__name__)

# Let the local stack offer legacy versions and ciphers
PERMISSIVE_CIPHERS = "ALL:@SECLEVEL=0"


class LocalStackError(Exception):
    """The local TLS library cannot offer the requested handshake."""


@dataclass
class Handshake:
    version: Optional[TLSVersion]
    version_name: str
    cipher: str


def _build_context(min_version: TLSVersion, max_version: TLSVersion, ciphers: Optional[List[str]] = None) -> ssl.SSLContext:
    try:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        if ciphers:
            context.set_ciphers(":".join(ciphers) + ":@SECLEVEL=0")
        else:
            context.set_ciphers(PERMISSIVE_CIPHERS)
        context.minimum_version = min_version.ssl_version
        context.maximum_version = max_version.ssl_version
    except (ValueError, ssl.SSLError) as e:
        raise LocalStackError(f"cannot configure {min_version.label}-{max_version.label}: {e}") from e
    return context


def handshake(
    address: str,
    port: int,
    min_version: TLSVersion,
    max_version: TLSVersion,
    ciphers: Optional[List[str]] = None,
    timeout: float = settings.DIAL_TIMEOUT,
) -> Handshake:
    """
    One TLS handshake with the version range and ciphers pinned.

    Raises LocalStackError when the local library refuses the setup, and
    OSError (ssl.SSLError included) for anything the connection does.
    """
    context = _build_context(min_version, max_version, ciphers)

    with socket.create_connection((address, port), timeout=timeout) as sock:
        try:
            ssock = context.wrap_socket(sock, server_hostname=None)
        except ssl.SSLError as e:
            if classifier.is_local_stack_error(str(e)):
                raise LocalStackError(classifier.describe_error(e)) from e
            raise
        with ssock:
            version_name = ssock.version() or ""
            cipher = ssock.cipher()
            return Handshake(
                version=TLSVersion.from_protocol_name(version_name),
                version_name=version_name,
                cipher=cipher[0] if cipher else "unknown",
            )


class NativeProbe(BaseProbe):
    """Direct-dial probe using the interpreter's TLS stack."""

    @property
    def name(self) -> str:
        return "native"

    def execute(self, address: str, port: int, policy: TLSPolicy) -> TLSProbeResult:
        timeout = self.config.get("timeout", settings.DIAL_TIMEOUT)

        # --- 1. Version ladder ---
        for version in policy.min_version.and_newer():
            try:
                handshake(address, port, version, version, timeout=timeout)
            except LocalStackError as e:
                if version == policy.min_version:
                    return classifier.unreachable_result(f"probe inconclusive: {e}")
                logger.warning(f"Skipping {version.label} check for {address}:{port}: {e}")
                continue
            except OSError as e:
                detail = classifier.describe_error(e)
                if version == policy.min_version:
                    evidence = classifier.classify_evidence(detail)
                    logger.debug(f"{address}:{port} {version.label} failed ({evidence.value}): {detail}")
                    return classifier.min_version_verdict(evidence, policy, detail)
                return classifier.version_rejected_result(version, policy, detail)

        # --- 2. Downgrade check ---
        below = policy.min_version.below()
        if below is not None:
            result = self.check_downgrade(address, port, policy, below, timeout)
            if not result.compliant:
                return result
            logger.debug(f"{address}:{port}: {result.reason}")

        # --- 3. Cipher check ---
        if policy.checks_ciphers:
            result = self._check_ciphers(address, port, policy, timeout)
            if result is not None:
                return result

        return classifier.compliant_result(policy)

    def check_downgrade(
        self, address: str, port: int, policy: TLSPolicy, below: TLSVersion, timeout: float,
    ) -> TLSProbeResult:
        """Offer TLS 1.0 through ``below`` in one handshake."""
        try:
            accepted = handshake(address, port, TLSVersion.TLS1_0, below, timeout=timeout)
        except LocalStackError as e:
            logger.debug(f"Downgrade check skipped for {address}:{port}: {e}")
            return classifier.floor_enforced_result(policy)
        except OSError as e:
            logger.debug(f"{address}:{port} refused {below.label} and older: {e}")
            return classifier.floor_enforced_result(policy)

        negotiated = accepted.version.label if accepted.version else accepted.version_name
        return classifier.downgrade_result(negotiated, policy)

    def _check_ciphers(self, address: str, port: int, policy: TLSPolicy, timeout: float) -> Optional[TLSProbeResult]:
        disallowed = [native_cipher_name(c) for c in compute_disallowed_ciphers(policy.allowed_cipher_ids)]
        disallowed = [n for n in disallowed if n]
        if not disallowed:
            return None

        try:
            accepted = handshake(
                address, port, TLSVersion.TLS1_2, TLSVersion.TLS1_2,
                ciphers=disallowed, timeout=timeout,
            )
        except LocalStackError as e:
            logger.warning(f"Cipher check skipped for {address}:{port}: {e}")
            return None
        except OSError as e:
            logger.debug(f"{address}:{port} refused disallowed ciphers: {e}")
            return None

        return classifier.cipher_accepted_result(accepted.cipher, policy)


def probe_tls(address: str, port: int, policy: TLSPolicy, config: Optional[Dict[str, Any]] = None) -> TLSProbeResult:
    """Probe one endpoint with the native probe."""
    return NativeProbe(config).run(address, port, policy)
