"""
pdfseal — embed CMS/PKCS#7 digital signatures into PDF documents.

Reserves a signature placeholder, hashes the exact ByteRange, obtains a
detached signature from a pluggable transport, and splices it back in
without moving a byte.
"""

from __future__ import annotations

from .api import sign
from .config import SigningConfig, TransportKind
from .constants import __version__
from .core.pdf import (
    SignatureOptions,
    insert_placeholder,
    splice_signature,
    verify_embedded_signature,
)
from .core.signing import sign_pdf
from .errors import (
    CertificateError,
    ConfigError,
    PDFError,
    PdfSealError,
    SignatureCapacityError,
    UnsupportedTransportError,
    VerificationError,
)
from .transports import LocalCertificateTransport, SigningTransport, create_transport

__all__ = [
    "CertificateError",
    "ConfigError",
    "LocalCertificateTransport",
    "PDFError",
    "PdfSealError",
    "SignatureCapacityError",
    "SignatureOptions",
    "SigningConfig",
    "SigningTransport",
    "TransportKind",
    "UnsupportedTransportError",
    "VerificationError",
    "__version__",
    "create_transport",
    "insert_placeholder",
    "sign",
    "sign_pdf",
    "splice_signature",
    "verify_embedded_signature",
]
