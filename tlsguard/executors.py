# tlsguard/executors.py
"""
Remote Executor: "run command C in context X, return stdout/stderr/error".

The exec probe is the only consumer. Executors never raise for command
failures. A non-zero exit keeps its stdout (openssl exits 1 on a rejected
handshake and the transcript is the evidence) and reports
``error="command terminated with exit code N"``.

Implementations:
    KubectlExecutor     kubectl exec into a probe pod container
    LocalShellExecutor  sh -c on the operator host
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from tlsguard import config as settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecContext:
    """Where a command runs: one container of one pod."""
    namespace: str
    pod_name: str
    container_name: str

    @classmethod
    def parse(cls, text: str) -> "ExecContext":
        """Parse "namespace/pod/container"."""
        parts = [p.strip() for p in text.split("/")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"expected namespace/pod/container, got {text!r}")
        return cls(namespace=parts[0], pod_name=parts[1], container_name=parts[2])

    def __str__(self) -> str:
        return f"{self.namespace}/{self.pod_name}/{self.container_name}"


LOCAL_CONTEXT = ExecContext(namespace="", pod_name="localhost", container_name="shell")


@dataclass
class ExecResult:
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RemoteExecutor(ABC):
    """
    Capability to run shell commands in an execution context.

    To add an executor:
        1. Subclass RemoteExecutor
        2. Implement `exec_command(context, command) -> ExecResult`
        3. Optionally override `available_contexts()`
    """

    def __init__(self, contexts: Optional[List[ExecContext]] = None):
        self._contexts = list(contexts or [])

    def available_contexts(self) -> List[ExecContext]:
        """Contexts the exec probe may use, in preference order."""
        return list(self._contexts)

    @abstractmethod
    def exec_command(self, context: ExecContext, command: str) -> ExecResult:
        ...


def _run(cmd: List[str], timeout: float) -> ExecResult:
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        stdout = e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
        return ExecResult(stdout=stdout, error=f"command timed out after {timeout}s")
    except FileNotFoundError:
        return ExecResult(error=f"executable not found: {cmd[0]}")
    except OSError as e:
        return ExecResult(error=f"failed to start {cmd[0]}: {e}")

    result = ExecResult(stdout=proc.stdout or "", stderr=proc.stderr or "")
    if proc.returncode != 0:
        result.error = f"command terminated with exit code {proc.returncode}"
    return result


class KubectlExecutor(RemoteExecutor):
    """Runs commands through `kubectl exec ... -- sh -c CMD`."""

    def __init__(
        self,
        contexts: Optional[List[ExecContext]] = None,
        kubectl_bin: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(contexts)
        self.kubectl_bin = kubectl_bin or settings.find_kubectl_binary()
        self.timeout = timeout or settings.EXEC_TIMEOUT + settings.EXEC_GRACE_SECONDS

    def exec_command(self, context: ExecContext, command: str) -> ExecResult:
        if not self.kubectl_bin:
            return ExecResult(error="kubectl binary not found")

        cmd = [
            self.kubectl_bin, "exec",
            "-n", context.namespace,
            context.pod_name,
            "-c", context.container_name,
            "--", "sh", "-c", command,
        ]
        logger.debug(f"kubectl exec in {context}: {command}")
        return _run(cmd, self.timeout)


class LocalShellExecutor(RemoteExecutor):
    """Runs commands with `sh -c` on this host. Ignores the context."""

    def __init__(self, timeout: Optional[float] = None):
        super().__init__([LOCAL_CONTEXT])
        self.timeout = timeout or settings.EXEC_TIMEOUT + settings.EXEC_GRACE_SECONDS

    def exec_command(self, context: ExecContext, command: str) -> ExecResult:
        logger.debug(f"local exec: {command}")
        return _run(["sh", "-c", command], self.timeout)


def configured_executor() -> Optional[RemoteExecutor]:
    """
    The exec fallback the operator configured (TLSGUARD_EXEC_MODE /
    TLSGUARD_EXEC_CONTEXTS), or None when it is off.

    Raises ValueError for a configuration that cannot work.
    """
    mode = settings.EXEC_MODE
    if not mode:
        return None
    if mode == "local":
        return LocalShellExecutor()
    if mode != "kubectl":
        raise ValueError(f"unknown exec mode: {mode}")

    contexts = [ExecContext.parse(entry) for entry in settings.EXEC_CONTEXTS.split(",") if entry.strip()]
    if not contexts:
        raise ValueError("exec mode 'kubectl' needs at least one namespace/pod/container context")
    return KubectlExecutor(contexts)
