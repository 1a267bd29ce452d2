# tlsguard/api/routes.py
"""
TLS compliance API routes.

Synchronous, nothing is persisted. Each request resolves its own policy.

Endpoints:
    GET  /tls/profiles   built-in profiles, resolved
    POST /tls/resolve    profile descriptor → effective policy
    POST /tls/probe      native probe of one address/port
    POST /tls/check      full compliance check over a list of endpoints

Request body for /tls/check:
    {
        "profile":   {"type": "Intermediate"},          # optional
        "services":  [<Kubernetes Service objects>],    # or
        "endpoints": [{"namespace": "ns", "service": "web",
                       "address": "10.0.0.1", "port": 443}]
    }

The exec fallback runs commands with the service's own credentials, so its
mode and contexts come from server configuration (TLSGUARD_EXEC_MODE,
TLSGUARD_EXEC_CONTEXTS). A request carrying "exec" is rejected.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from tlsguard.executors import configured_executor
from tlsguard.policy import named_policies, resolve_profile
from tlsguard.scanner.engines import probe_tls
from tlsguard.scanner.orchestrator import check_service_tls_compliance
from tlsguard.targets import StaticTargetEnumerator

logger = logging.getLogger(__name__)

tls_bp = Blueprint("tls", __name__, url_prefix="/tls")


# ═══════════════════════════════════════════════════════════════
# INPUT VALIDATION
# ═══════════════════════════════════════════════════════════════

def _validate_profile(body: dict) -> tuple:
    """Returns (policy, error_response)."""
    descriptor = body.get("profile")
    if descriptor is not None and not isinstance(descriptor, dict):
        return None, (jsonify(error="Profile must be an object."), 400)
    return resolve_profile(descriptor), None


def _validate_probe_input(body: dict) -> tuple:
    """
    Validate single-endpoint probe input.
    Accepts {"address": "10.0.0.1", "port": 443}.
    Returns (address, port, error_response).
    """
    address = (body.get("address") or "").strip()
    if not address:
        return None, None, (jsonify(error="Address is required."), 400)
    if len(address) > 253:
        return None, None, (jsonify(error="Address too long."), 400)

    try:
        port = int(body.get("port"))
    except (ValueError, TypeError):
        return None, None, (jsonify(error="Port must be a number."), 400)
    if port < 1 or port > 65535:
        return None, None, (jsonify(error="Port must be between 1 and 65535."), 400)

    return address.strip("[]"), port, None


def _build_executor(body: dict) -> tuple:
    """Returns (executor_or_None, error_response)."""
    if "exec" in body:
        return None, (jsonify(error="Exec settings are server configuration, not request input."), 400)
    try:
        return configured_executor(), None
    except ValueError as e:
        logger.error(f"Exec fallback misconfigured: {e}")
        return None, (jsonify(error="Exec fallback is misconfigured on the server."), 500)


# ═══════════════════════════════════════════════════════════════
# PROFILES
# ═══════════════════════════════════════════════════════════════

@tls_bp.get("/profiles")
def list_profiles():
    return jsonify({name: p.to_dict() for name, p in named_policies().items()}), 200


@tls_bp.post("/resolve")
def resolve():
    body = request.get_json(silent=True)
    if body is not None and not isinstance(body, dict):
        return jsonify(error="Profile must be an object."), 400
    return jsonify(resolve_profile(body or None).to_dict()), 200


# ═══════════════════════════════════════════════════════════════
# PROBING
# ═══════════════════════════════════════════════════════════════

@tls_bp.post("/probe")
def probe():
    """Native probe of one endpoint. No exec fallback."""
    body = request.get_json(silent=True) or {}
    address, port, err = _validate_probe_input(body)
    if err:
        return err
    policy, err = _validate_profile(body)
    if err:
        return err

    result = probe_tls(address, port, policy)
    return jsonify(result=result.to_dict(), policy=policy.to_dict()), 200


@tls_bp.post("/check")
def check():
    body = request.get_json(silent=True) or {}
    policy, err = _validate_profile(body)
    if err:
        return err

    services = body.get("services")
    endpoints = body.get("endpoints")
    try:
        if services is not None:
            enumerator = StaticTargetEnumerator.from_services(services)
        elif endpoints is not None:
            enumerator = StaticTargetEnumerator.from_dicts(endpoints)
        else:
            return jsonify(error="Either services or endpoints is required."), 400
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.info(f"Rejected malformed target list: {e}")
        return jsonify(error="Malformed services or endpoints."), 400

    executor, err = _build_executor(body)
    if err:
        return err

    compliant, non_compliant = check_service_tls_compliance(policy, enumerator, executor)
    return jsonify(
        policy=policy.to_dict(),
        compliant=[r.to_dict() for r in compliant],
        nonCompliant=[r.to_dict() for r in non_compliant],
    ), 200
