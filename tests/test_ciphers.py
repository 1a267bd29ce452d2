import random

import pytest

from tlsguard.policy import compute_disallowed_ciphers, compute_disallowed_tool_ciphers, resolve_profile
from tlsguard.policy.ciphers import native_cipher_name, supported_cipher_ids, tool_cipher_names


def _subsets(universe, count=25, seed=7):
    rng = random.Random(seed)
    items = sorted(universe)
    yield set()
    yield set(items)
    for _ in range(count):
        yield set(rng.sample(items, rng.randint(0, len(items))))


def test_local_stack_supports_modern_ciphers():
    assert 0xC02F in supported_cipher_ids()  # ECDHE-RSA-AES128-GCM-SHA256


def test_native_complement_partitions_supported_set():
    supported = supported_cipher_ids()

    for allowed in _subsets(supported):
        disallowed = set(compute_disallowed_ciphers(allowed))
        assert disallowed | allowed == supported
        assert not disallowed & allowed


def test_tool_complement_partitions_name_space():
    universe = tool_cipher_names()

    for allowed in _subsets(universe):
        disallowed = set(compute_disallowed_tool_ciphers(allowed))
        assert disallowed | allowed == universe
        assert not disallowed & allowed


def test_allowed_ids_outside_supported_set_are_ignored():
    assert set(compute_disallowed_ciphers({0xFFFF})) == supported_cipher_ids()


@pytest.mark.parametrize("profile", ["Old", "Intermediate", "Modern"])
def test_named_profiles_partition(profile):
    policy = resolve_profile({"type": profile})
    disallowed = set(compute_disallowed_ciphers(policy.allowed_cipher_ids))
    assert not disallowed & policy.allowed_cipher_ids


def test_old_profile_disallows_nothing():
    policy = resolve_profile({"type": "Old"})

    assert compute_disallowed_ciphers(policy.allowed_cipher_ids) == []
    assert compute_disallowed_tool_ciphers(policy.allowed_cipher_names) == []


def test_intermediate_tool_complement():
    policy = resolve_profile(None)
    disallowed = compute_disallowed_tool_ciphers(policy.allowed_cipher_names)

    assert "DES-CBC3-SHA" in disallowed
    assert "DHE-RSA-AES256-SHA256" in disallowed
    assert "DHE-RSA-AES128-GCM-SHA256" not in disallowed
    assert "TLS_AES_128_GCM_SHA256" not in disallowed
    assert disallowed == sorted(disallowed)


def test_native_cipher_name():
    assert native_cipher_name(0x002F) == "AES128-SHA"
    assert native_cipher_name(0x1301) is None
