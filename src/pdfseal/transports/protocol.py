"""
Transport protocol abstraction for signing backends.

Defines the interface that signing transports must implement. The
placeholder inserter, the splicer, and the pipeline depend on this
protocol, not on concrete implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SigningTransport(Protocol):
    """Protocol for signature producers (local key, remote KMS/HSM, ...)."""

    def sign(self, document: bytes) -> bytes:
        """
        Produce a detached signature for a placeholder-bearing PDF.

        The signature covers exactly the bytes described by the
        document's /ByteRange; the reserved Contents span is excluded.

        Args:
            document: PDF bytes with a resolved ByteRange and an empty
                Contents placeholder.

        Returns:
            DER-encoded CMS/PKCS#7 signature (not a document).

        Raises:
            PDFError: If the ByteRange cannot be located.
            CertificateError: If key material cannot be loaded.
        """
        ...
