# tlsguard/scanner/analyzers/__init__.py
"""
Evidence classification.
Turns handshake errors and openssl transcripts into verdicts.
Analyzers do NOT open connections; they only interpret evidence.
"""
from tlsguard.scanner.analyzers.tls_classifier import Evidence, classify_evidence

__all__ = ["Evidence", "classify_evidence"]
