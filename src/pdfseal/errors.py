"""pdfseal error types."""

from __future__ import annotations

__all__ = [
    "CertificateError",
    "ConfigError",
    "PDFError",
    "PdfSealError",
    "SignatureCapacityError",
    "UnsupportedTransportError",
    "VerificationError",
]


class PdfSealError(Exception):
    """Base error for pdfseal operations."""


class PDFError(PdfSealError):
    """PDF structure, parsing, or building error."""


class SignatureCapacityError(PDFError):
    """Signature does not fit in the reserved /Contents placeholder.

    Args:
        required: Hex characters needed for the signature.
        available: Hex characters reserved in the document.
    """

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Signature exceeds placeholder capacity: {required} hex chars > {available} reserved"
        )
        self.required = required
        self.available = available

    def __reduce__(self) -> tuple[type[SignatureCapacityError], tuple[int, int]]:
        return (type(self), (self.required, self.available))


class CertificateError(PdfSealError):
    """Certificate container loading or key material error."""


class ConfigError(PdfSealError):
    """Configuration validation error."""


class UnsupportedTransportError(ConfigError):
    """Requested signing transport is not known.

    Args:
        transport: The transport identifier that was requested.
    """

    def __init__(self, transport: str) -> None:
        super().__init__(f"Unsupported signing transport: {transport!r}")
        self.transport = transport

    def __reduce__(self) -> tuple[type[UnsupportedTransportError], tuple[str]]:
        return (type(self), (self.transport,))


class VerificationError(PdfSealError):
    """Post-sign verification of a signed document failed."""
