# tlsguard/policy/models.py
"""
Value types shared by the resolver, the cipher calculator and both probes.

A TLSPolicy is built once per run by resolve_profile() and then only read.
Nothing downstream mutates it, so a single policy can be handed to any number
of endpoint probes running side by side.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, List, Optional


class TLSVersion(IntEnum):
    """TLS protocol versions by wire code point. Ordered oldest to newest."""

    TLS1_0 = 0x0301
    TLS1_1 = 0x0302
    TLS1_2 = 0x0303
    TLS1_3 = 0x0304

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def openssl_flag(self) -> str:
        return _OPENSSL_FLAGS[self]

    @property
    def openssl_name(self) -> str:
        return _OPENSSL_NAMES[self]

    @property
    def ssl_version(self) -> ssl.TLSVersion:
        return _SSL_VERSIONS[self]

    def below(self) -> Optional["TLSVersion"]:
        """The version immediately below this one, or None for TLS 1.0."""
        if self is TLSVersion.TLS1_0:
            return None
        return TLSVersion(self.value - 1)

    def and_newer(self) -> List["TLSVersion"]:
        return [v for v in TLSVersion if v >= self]

    @classmethod
    def newest(cls) -> "TLSVersion":
        return cls.TLS1_3

    @classmethod
    def from_openshift(cls, value: Optional[str]) -> "TLSVersion":
        """
        Parse an OpenShift ``minTLSVersion`` string ("VersionTLS12").
        Anything unrecognized maps to TLS 1.2.
        """
        return _OPENSHIFT_NAMES.get((value or "").strip(), cls.TLS1_2)

    @classmethod
    def from_protocol_name(cls, value: Optional[str]) -> Optional["TLSVersion"]:
        """Parse a protocol name as printed by ssl/openssl ("TLSv1.2")."""
        if not value:
            return None
        for version, name in _OPENSSL_NAMES.items():
            if name == value.strip():
                return version
        return None


_LABELS = {
    TLSVersion.TLS1_0: "TLS 1.0",
    TLSVersion.TLS1_1: "TLS 1.1",
    TLSVersion.TLS1_2: "TLS 1.2",
    TLSVersion.TLS1_3: "TLS 1.3",
}

_OPENSSL_FLAGS = {
    TLSVersion.TLS1_0: "-tls1",
    TLSVersion.TLS1_1: "-tls1_1",
    TLSVersion.TLS1_2: "-tls1_2",
    TLSVersion.TLS1_3: "-tls1_3",
}

_OPENSSL_NAMES = {
    TLSVersion.TLS1_0: "TLSv1",
    TLSVersion.TLS1_1: "TLSv1.1",
    TLSVersion.TLS1_2: "TLSv1.2",
    TLSVersion.TLS1_3: "TLSv1.3",
}

_SSL_VERSIONS = {
    TLSVersion.TLS1_0: ssl.TLSVersion.TLSv1,
    TLSVersion.TLS1_1: ssl.TLSVersion.TLSv1_1,
    TLSVersion.TLS1_2: ssl.TLSVersion.TLSv1_2,
    TLSVersion.TLS1_3: ssl.TLSVersion.TLSv1_3,
}

_OPENSHIFT_NAMES = {
    "VersionTLS10": TLSVersion.TLS1_0,
    "VersionTLS11": TLSVersion.TLS1_1,
    "VersionTLS12": TLSVersion.TLS1_2,
    "VersionTLS13": TLSVersion.TLS1_3,
}


def version_label(code: int) -> str:
    """Human-readable label for any version code, known or not."""
    try:
        return TLSVersion(code).label
    except ValueError:
        return f"unknown (0x{code:04x})"


class ProfileType(str, Enum):
    OLD = "Old"
    INTERMEDIATE = "Intermediate"
    MODERN = "Modern"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ProfileType"]:
        """Case-insensitive lookup. Returns None for unknown names."""
        if not value:
            return None
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


@dataclass(frozen=True)
class TLSPolicy:
    """
    The effective TLS policy probes validate against.

    Fields:
        profile_type:          Which profile produced this policy.
        min_version:           Lowest protocol version the server must accept
                               (and the floor it must enforce).
        allowed_cipher_ids:    IANA code points the local TLS stack can offer.
                               Only meaningful when min_version <= TLS 1.2.
                               Empty for Modern.
        allowed_cipher_names:  Same allowance in openssl cipher names, TLS 1.3
                               names excluded. Kept at full fidelity (DHE and
                               other names the local stack cannot map stay here).
    """
    profile_type: ProfileType
    min_version: TLSVersion
    allowed_cipher_ids: FrozenSet[int] = field(default_factory=frozenset)
    allowed_cipher_names: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def checks_ciphers(self) -> bool:
        """Configurable cipher suites only exist below TLS 1.3."""
        return self.min_version <= TLSVersion.TLS1_2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile_type": self.profile_type.value,
            "min_version": self.min_version.label,
            "allowed_cipher_ids": [f"0x{c:04x}" for c in sorted(self.allowed_cipher_ids)],
            "allowed_cipher_names": sorted(self.allowed_cipher_names),
        }
