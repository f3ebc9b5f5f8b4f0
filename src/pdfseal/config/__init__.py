"""
Signing configuration.

Import from this package directly rather than from the submodule.
"""

from __future__ import annotations

from .config import CertificateSource, SigningConfig, TransportKind, resolve_certificate_source

__all__ = [
    "CertificateSource",
    "SigningConfig",
    "TransportKind",
    "resolve_certificate_source",
]
