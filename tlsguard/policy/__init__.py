"""
TLS security profiles.
Resolves a configured profile descriptor into the immutable TLSPolicy
that every probe validates against.
"""
from tlsguard.policy.models import ProfileType, TLSPolicy, TLSVersion, version_label
from tlsguard.policy.resolver import (
    CustomProfileSpec,
    TLSSecurityProfile,
    default_policy,
    named_policies,
    resolve_profile,
)
from tlsguard.policy.ciphers import compute_disallowed_ciphers, compute_disallowed_tool_ciphers

__all__ = [
    "ProfileType", "TLSPolicy", "TLSVersion", "version_label",
    "CustomProfileSpec", "TLSSecurityProfile",
    "default_policy", "named_policies", "resolve_profile",
    "compute_disallowed_ciphers", "compute_disallowed_tool_ciphers",
]
