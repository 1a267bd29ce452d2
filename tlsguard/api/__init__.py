"""
TLS compliance HTTP API.

These are NOT background jobs. They probe synchronously and return results
immediately; nothing is stored.

Endpoints:
    GET  /tls/profiles
    POST /tls/resolve
    POST /tls/probe
    POST /tls/check
"""

from tlsguard.api.routes import tls_bp

__all__ = ["tls_bp"]
