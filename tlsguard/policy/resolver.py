# tlsguard/policy/resolver.py
"""
Profile descriptor → effective TLSPolicy.

A descriptor is what the cluster (or the caller) configured, in the shape of
the OpenShift API server's ``spec.tlsSecurityProfile``:

    {"type": "Intermediate"}
    {"type": "Custom",
     "custom": {"minTLSVersion": "VersionTLS12",
                "ciphers": ["ECDHE-RSA-AES128-GCM-SHA256", ...]}}

Resolution never fails on content. A missing descriptor, an unknown profile
type or a Custom profile without its custom block all resolve to
Intermediate. Unmappable Custom cipher names are dropped from the native
cipher set only; the exec probe still sees them by name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from tlsguard.policy.catalog import NATIVE_CIPHER_IDS, PROFILE_SPECS, TLS13_CIPHER_NAMES
from tlsguard.policy.models import ProfileType, TLSPolicy, TLSVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomProfileSpec:
    min_tls_version: str = "VersionTLS12"
    ciphers: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomProfileSpec":
        ciphers = data.get("ciphers") or []
        return cls(
            min_tls_version=data.get("minTLSVersion") or "VersionTLS12",
            ciphers=[str(c) for c in ciphers],
        )


@dataclass(frozen=True)
class TLSSecurityProfile:
    """A configured security-profile descriptor, as read from the cluster."""
    type: str = ProfileType.INTERMEDIATE.value
    custom: Optional[CustomProfileSpec] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TLSSecurityProfile":
        custom_raw = data.get("custom")
        custom = CustomProfileSpec.from_dict(custom_raw) if isinstance(custom_raw, Mapping) else None
        return cls(type=str(data.get("type") or ""), custom=custom)


Descriptor = Union[TLSSecurityProfile, Mapping[str, Any], None]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def _build_policy(profile_type: ProfileType, min_version: TLSVersion, names: Iterable[str]) -> TLSPolicy:
    cipher_ids = set()
    cipher_names = set()

    for name in names:
        if name in TLS13_CIPHER_NAMES:
            continue
        cipher_names.add(name)
        code = NATIVE_CIPHER_IDS.get(name)
        if code is None:
            logger.debug(f"Cipher {name} has no native mapping, exec probe only")
            continue
        cipher_ids.add(code)

    return TLSPolicy(
        profile_type=profile_type,
        min_version=min_version,
        allowed_cipher_ids=frozenset(cipher_ids),
        allowed_cipher_names=frozenset(cipher_names),
    )


def _named_policy(profile_type: ProfileType) -> TLSPolicy:
    min_version, names = PROFILE_SPECS[profile_type]
    return _build_policy(profile_type, min_version, names)


def default_policy() -> TLSPolicy:
    """The policy used when nothing is configured: Intermediate."""
    return _named_policy(ProfileType.INTERMEDIATE)


def resolve_profile(descriptor: Descriptor) -> TLSPolicy:
    """
    Resolve a profile descriptor into a TLSPolicy.

    Accepts None, a TLSSecurityProfile, or a mapping in the OpenShift API
    shape. Raises TypeError only for other argument types.
    """
    if descriptor is None:
        return default_policy()

    if isinstance(descriptor, Mapping):
        descriptor = TLSSecurityProfile.from_dict(descriptor)
    elif not isinstance(descriptor, TLSSecurityProfile):
        raise TypeError(f"Unsupported profile descriptor: {type(descriptor).__name__}")

    profile_type = ProfileType.parse(descriptor.type)

    if profile_type is None:
        logger.info(f"Unknown TLS profile type '{descriptor.type}', using Intermediate")
        return default_policy()

    if profile_type is ProfileType.CUSTOM:
        if descriptor.custom is None:
            logger.info("Custom TLS profile has no custom spec, using Intermediate")
            return default_policy()
        return _build_policy(
            ProfileType.CUSTOM,
            TLSVersion.from_openshift(descriptor.custom.min_tls_version),
            descriptor.custom.ciphers,
        )

    return _named_policy(profile_type)


def named_policies() -> Dict[str, TLSPolicy]:
    """All built-in profiles, keyed by name."""
    return {p.value: _named_policy(p) for p in PROFILE_SPECS}
