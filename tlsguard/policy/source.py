# tlsguard/policy/source.py
"""
Policy sources: where the configured security-profile descriptor comes from.

A source returns the descriptor, or None meaning "use the default". Every
failure to read one (missing file, bad JSON, no kubectl, a cluster without
the APIServer resource) is logged and treated as None, so a run always gets
a policy.
"""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from tlsguard import config as settings
from tlsguard.policy.models import TLSPolicy
from tlsguard.policy.resolver import Descriptor, resolve_profile

logger = logging.getLogger(__name__)


def extract_profile(document: Any) -> Optional[Dict[str, Any]]:
    """
    Pull the profile descriptor out of a JSON document.

    Accepts either a bare descriptor ({"type": ...}) or a full APIServer
    object (spec.tlsSecurityProfile). Returns None when neither is present.
    """
    if not isinstance(document, Mapping):
        return None
    spec = document.get("spec")
    if isinstance(spec, Mapping):
        profile = spec.get("tlsSecurityProfile")
        return dict(profile) if isinstance(profile, Mapping) else None
    if "type" in document:
        return dict(document)
    return None


class PolicySource(ABC):

    @abstractmethod
    def get_descriptor(self) -> Descriptor:
        """The configured descriptor, or None for the default profile."""
        ...

    def resolve(self) -> TLSPolicy:
        return resolve_profile(self.get_descriptor())


class StaticPolicySource(PolicySource):
    def __init__(self, descriptor: Descriptor = None):
        self.descriptor = descriptor

    def get_descriptor(self) -> Descriptor:
        return self.descriptor


class FilePolicySource(PolicySource):
    """Reads a descriptor (or an APIServer object) from a JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get_descriptor(self) -> Descriptor:
        try:
            document = json.loads(self.path.read_text())
        except FileNotFoundError:
            logger.info(f"No TLS profile file at {self.path}, using default")
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read TLS profile from {self.path}: {e}")
            return None
        return extract_profile(document)


class KubectlPolicySource(PolicySource):
    """
    Reads spec.tlsSecurityProfile from the cluster-scoped APIServer object.

    Clusters that are not OpenShift have no such resource; that, like any
    other failure, means "use the default".
    """

    def __init__(self, kubectl_bin: Optional[str] = None, timeout: int = 30):
        self.kubectl_bin = kubectl_bin or settings.find_kubectl_binary()
        self.timeout = timeout

    def get_descriptor(self) -> Descriptor:
        if not self.kubectl_bin:
            logger.info("kubectl not found, using default TLS profile")
            return None

        cmd = [self.kubectl_bin, "get", "apiserver", "cluster", "-o", "json"]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Timed out reading APIServer config after {self.timeout}s")
            return None
        except OSError as e:
            logger.warning(f"Failed to run kubectl: {e}")
            return None

        if proc.returncode != 0:
            stderr = (proc.stderr or "")[:settings.REASON_TRUNCATE_LEN]
            logger.info(f"APIServer config unavailable, using default TLS profile: {stderr}")
            return None

        try:
            document = json.loads(proc.stdout)
        except ValueError as e:
            logger.warning(f"APIServer config is not valid JSON: {e}")
            return None
        return extract_profile(document)
