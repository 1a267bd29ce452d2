# tlsguard/policy/ciphers.py
"""
Cipher Set Calculator.

Computes the complement ("disallowed") of an allowed cipher set. Probes use
the result to build an adversarial handshake: a server that accepts any of
these is configured more permissively than its profile allows.

Two identifier spaces:
    native  IANA code points the local ssl stack can offer
    tool    openssl cipher names passed to `openssl s_client -cipher`
"""

from __future__ import annotations

import logging
import ssl
from functools import lru_cache
from typing import AbstractSet, FrozenSet, List, Optional

from tlsguard.policy.catalog import NATIVE_CIPHER_IDS, NATIVE_CIPHER_NAMES, PROFILE_SPECS, TLS13_CIPHER_NAMES

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def supported_cipher_ids() -> FrozenSet[int]:
    """
    IANA codes from the native table that this interpreter's OpenSSL build
    can actually offer at TLS 1.2 and below.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    try:
        context.set_ciphers("ALL:@SECLEVEL=0")
    except ssl.SSLError:
        context.set_ciphers("ALL")
    local_names = {c["name"] for c in context.get_ciphers()}

    supported = frozenset(code for name, code in NATIVE_CIPHER_IDS.items() if name in local_names)
    missing = sorted(set(NATIVE_CIPHER_IDS) - local_names)
    if missing:
        logger.debug(f"Local TLS stack cannot offer: {', '.join(missing)}")
    return supported


def compute_disallowed_ciphers(allowed: AbstractSet[int]) -> List[int]:
    """Supported native cipher codes that are not in ``allowed``, sorted."""
    return sorted(supported_cipher_ids() - set(allowed))


@lru_cache(maxsize=1)
def tool_cipher_names() -> FrozenSet[str]:
    """Every TLS 1.2-and-below cipher name the exec probe knows about."""
    names = set(NATIVE_CIPHER_IDS)
    for _, cipher_names in PROFILE_SPECS.values():
        names.update(n for n in cipher_names if n not in TLS13_CIPHER_NAMES)
    return frozenset(names)


def compute_disallowed_tool_ciphers(allowed_names: AbstractSet[str]) -> List[str]:
    """Known openssl cipher names that are not in ``allowed_names``, sorted."""
    return sorted(tool_cipher_names() - set(allowed_names))


def native_cipher_name(code: int) -> Optional[str]:
    return NATIVE_CIPHER_NAMES.get(code)
