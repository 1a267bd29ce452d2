# tlsguard/scanner/engines/exec_probe.py
"""
Exec TLS probe: the same three steps as the native probe, each one an
`openssl s_client` run inside a remote execution context (a probe pod that
can reach the service network).

Each step is a single shell command, bounded by `timeout` at the shell level:

    echo | timeout 5 openssl s_client -connect 10.0.0.1:443 -tls1_2 \
        -cipher DEFAULT@SECLEVEL=0 2>&1

The downgrade step offers every version below the minimum at once:

    ... -min_protocol TLSv1 -max_protocol TLSv1.1 -cipher DEFAULT@SECLEVEL=0 2>&1

The cipher step swaps the cipher string for the disallowed names:

    ... -tls1_2 -cipher AES128-SHA:AES256-SHA:...:@SECLEVEL=0 2>&1

Reading the transcript:
    - openssl exits non-zero on a rejected handshake. The executor reports
      that as an error but stdout is still the evidence, so it is parsed.
    - "Protocol  : TLSv1.2" appears even when the handshake failed. It only
      counts together with no failure marker.
    - A TLS 1.3 handshake may print no "Protocol" line at all, only
      "New, TLSv1.3, Cipher is ...". See tls_classifier.transcript_version().
    - An executor error with nothing openssl-like in stdout (openssl missing,
      pod gone) is unreachable.

Cipher names are passed through verbatim, so DHE and other suites the local
ssl stack cannot express are still checked here.

Profile config options:
    exec_timeout: int - seconds for the shell-level timeout (default 5)
    openssl_bin:  str - openssl binary in the exec context (default "openssl")
"""

from __future__ import annotations

import logging
import shlex
from typing import Any, Dict, List, Optional

from tlsguard import config as settings
from tlsguard.executors import ExecContext, ExecResult, RemoteExecutor
from tlsguard.policy.ciphers import compute_disallowed_tool_ciphers
from tlsguard.policy.models import TLSPolicy, TLSVersion
from tlsguard.scanner.analyzers import tls_classifier as classifier
from tlsguard.scanner.base import BaseProbe, TLSProbeResult

logger = logging.getLogger(__name__)

VIA = "exec probe"


def join_host_port(address: str, port: int) -> str:
    if ":" in address and not address.startswith("["):
        return f"[{address}]:{port}"
    return f"{address}:{port}"


def build_s_client_command(
    address: str,
    port: int,
    version: TLSVersion,
    ciphers: Optional[List[str]] = None,
    timeout: int = settings.EXEC_TIMEOUT,
    openssl_bin: str = settings.OPENSSL_BIN,
    max_version: Optional[TLSVersion] = None,
) -> str:
    """
    One s_client invocation. Pinned to ``version``, or offering the range
    ``version``..``max_version`` when a maximum is given.
    """
    if max_version is not None:
        protocol = f"-min_protocol {version.openssl_name} -max_protocol {max_version.openssl_name}"
    else:
        protocol = version.openssl_flag
    cipher_string = ":".join(ciphers) + ":@SECLEVEL=0" if ciphers else "DEFAULT@SECLEVEL=0"
    return (
        f"echo | timeout {int(timeout)} {openssl_bin} s_client "
        f"-connect {shlex.quote(join_host_port(address, port))} "
        f"{protocol} -cipher {shlex.quote(cipher_string)} 2>&1"
    )


class ExecProbe(BaseProbe):
    """Probe driven through `openssl s_client` in a remote context."""

    def __init__(self, executor: RemoteExecutor, context: ExecContext, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.executor = executor
        self.context = context

    @property
    def name(self) -> str:
        return "exec"

    def _s_client(
        self,
        address: str,
        port: int,
        version: TLSVersion,
        ciphers: Optional[List[str]] = None,
        max_version: Optional[TLSVersion] = None,
    ) -> ExecResult:
        command = build_s_client_command(
            address, port, version,
            ciphers=ciphers,
            timeout=self.config.get("exec_timeout", settings.EXEC_TIMEOUT),
            openssl_bin=self.config.get("openssl_bin", settings.OPENSSL_BIN),
            max_version=max_version,
        )
        return self.executor.exec_command(self.context, command)

    def execute(self, address: str, port: int, policy: TLSPolicy) -> TLSProbeResult:
        target = join_host_port(address, port)

        # --- 1. Version ladder ---
        for version in policy.min_version.and_newer():
            out = self._s_client(address, port, version)
            if classifier.transcript_negotiated(out.stdout, version):
                continue

            if version == policy.min_version:
                if out.error and not classifier.has_tool_output(out.stdout):
                    return classifier.unreachable_result(
                        f"exec probe failed: {out.error} (stdout={classifier.truncate(out.stdout)})"
                    )
                evidence = classifier.classify_evidence(out.stdout)
                logger.debug(f"{target} {version.label} via {self.context} failed ({evidence.value})")
                return classifier.min_version_verdict(
                    evidence, policy, classifier.evidence_line(out.stdout), via=VIA,
                )

            if classifier.is_local_stack_error(out.stdout) or not classifier.has_tool_output(out.stdout):
                logger.warning(
                    f"Skipping {version.label} check for {target}: "
                    f"{out.error or classifier.evidence_line(out.stdout)}"
                )
                continue
            return classifier.version_rejected_result(
                version, policy, classifier.evidence_line(out.stdout), via=VIA,
            )

        # --- 2. Downgrade check ---
        below = policy.min_version.below()
        if below is not None:
            result = self.check_downgrade(address, port, policy, below)
            if not result.compliant:
                return result
            logger.debug(f"{target}: {result.reason}")

        # --- 3. Cipher check ---
        if policy.checks_ciphers:
            disallowed = compute_disallowed_tool_ciphers(policy.allowed_cipher_names)
            if disallowed:
                out = self._s_client(address, port, TLSVersion.TLS1_2, ciphers=disallowed)
                if transcript_accepted_cipher(out.stdout):
                    cipher = classifier.extract_tool_cipher(out.stdout)
                    return classifier.cipher_accepted_result(cipher, policy, via=VIA)

        return classifier.compliant_result(policy, via=VIA)

    def check_downgrade(self, address: str, port: int, policy: TLSPolicy, below: TLSVersion) -> TLSProbeResult:
        """Offer TLS 1.0 through ``below`` in one handshake."""
        out = self._s_client(address, port, TLSVersion.TLS1_0, max_version=below)
        negotiated = classifier.transcript_version(out.stdout)
        if negotiated is not None and negotiated < policy.min_version:
            return classifier.downgrade_result(negotiated.label, policy, via=VIA)
        if classifier.is_local_stack_error(out.stdout):
            logger.debug(f"Downgrade check skipped in {self.context}: {classifier.evidence_line(out.stdout)}")
        return classifier.floor_enforced_result(policy, via=VIA)


def transcript_accepted_cipher(text: str) -> bool:
    """Did a cipher-step transcript complete a TLS 1.2 handshake?"""
    if not classifier.transcript_negotiated(text, TLSVersion.TLS1_2):
        return False
    return classifier.extract_tool_cipher(text) != "unknown"


def probe_tls_via_exec(
    executor: RemoteExecutor,
    context: ExecContext,
    address: str,
    port: int,
    policy: TLSPolicy,
    config: Optional[Dict[str, Any]] = None,
) -> TLSProbeResult:
    """Probe one endpoint through `openssl s_client` in ``context``."""
    return ExecProbe(executor, context, config).run(address, port, policy)
