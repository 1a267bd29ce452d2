# tlsguard/policy/catalog.py
"""
Static cipher and profile tables.

Profile contents follow the OpenShift TLSSecurityProfile definitions, which in
turn track Mozilla's server-side TLS recommendations. Cipher names are OpenSSL
names throughout (that is what the API server config and `openssl s_client`
both use).

NATIVE_CIPHER_IDS maps the names the local ssl stack is asked to offer to
their IANA code points. It covers ECDHE and static-RSA key exchange only.
DHE suites are left to the exec probe, which passes cipher names through
verbatim.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from tlsguard.policy.models import ProfileType, TLSVersion


# TLS 1.3 suites are fixed by the protocol and never configurable
TLS13_CIPHER_NAMES = frozenset({
    "TLS_AES_128_GCM_SHA256",
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
})

NATIVE_CIPHER_IDS: Dict[str, int] = {
    # ECDHE, AEAD
    "ECDHE-ECDSA-AES128-GCM-SHA256":  0xC02B,
    "ECDHE-RSA-AES128-GCM-SHA256":    0xC02F,
    "ECDHE-ECDSA-AES256-GCM-SHA384":  0xC02C,
    "ECDHE-RSA-AES256-GCM-SHA384":    0xC030,
    "ECDHE-ECDSA-CHACHA20-POLY1305":  0xCCA9,
    "ECDHE-RSA-CHACHA20-POLY1305":    0xCCA8,
    # ECDHE, CBC
    "ECDHE-ECDSA-AES128-SHA256":      0xC023,
    "ECDHE-RSA-AES128-SHA256":        0xC027,
    "ECDHE-ECDSA-AES128-SHA":         0xC009,
    "ECDHE-RSA-AES128-SHA":           0xC013,
    "ECDHE-ECDSA-AES256-SHA384":      0xC024,
    "ECDHE-RSA-AES256-SHA384":        0xC028,
    "ECDHE-ECDSA-AES256-SHA":         0xC00A,
    "ECDHE-RSA-AES256-SHA":           0xC014,
    # Static RSA key exchange
    "AES128-GCM-SHA256":              0x009C,
    "AES256-GCM-SHA384":              0x009D,
    "AES128-SHA256":                  0x003C,
    "AES256-SHA256":                  0x003D,
    "AES128-SHA":                     0x002F,
    "AES256-SHA":                     0x0035,
    "DES-CBC3-SHA":                   0x000A,
}

NATIVE_CIPHER_NAMES: Dict[int, str] = {code: name for name, code in NATIVE_CIPHER_IDS.items()}


_INTERMEDIATE_CIPHERS: List[str] = [
    "TLS_AES_128_GCM_SHA256",
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "DHE-RSA-AES128-GCM-SHA256",
    "DHE-RSA-AES256-GCM-SHA384",
]

_OLD_CIPHERS: List[str] = [
    "TLS_AES_128_GCM_SHA256",
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "DHE-RSA-AES128-GCM-SHA256",
    "DHE-RSA-AES256-GCM-SHA384",
    "DHE-RSA-CHACHA20-POLY1305",
    "ECDHE-ECDSA-AES128-SHA256",
    "ECDHE-RSA-AES128-SHA256",
    "ECDHE-ECDSA-AES128-SHA",
    "ECDHE-RSA-AES128-SHA",
    "ECDHE-ECDSA-AES256-SHA384",
    "ECDHE-RSA-AES256-SHA384",
    "ECDHE-ECDSA-AES256-SHA",
    "ECDHE-RSA-AES256-SHA",
    "DHE-RSA-AES128-SHA256",
    "DHE-RSA-AES256-SHA256",
    "AES128-GCM-SHA256",
    "AES256-GCM-SHA384",
    "AES128-SHA256",
    "AES256-SHA256",
    "AES128-SHA",
    "AES256-SHA",
    "DES-CBC3-SHA",
]

_MODERN_CIPHERS: List[str] = [
    "TLS_AES_128_GCM_SHA256",
    "TLS_AES_256_GCM_SHA384",
    "TLS_CHACHA20_POLY1305_SHA256",
]

# Named profiles: (minimum version, cipher names)
PROFILE_SPECS: Dict[ProfileType, Tuple[TLSVersion, List[str]]] = {
    ProfileType.OLD: (TLSVersion.TLS1_0, _OLD_CIPHERS),
    ProfileType.INTERMEDIATE: (TLSVersion.TLS1_2, _INTERMEDIATE_CIPHERS),
    ProfileType.MODERN: (TLSVersion.TLS1_3, _MODERN_CIPHERS),
}
