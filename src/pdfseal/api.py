"""High-level convenience API for PDF signing.

:func:`sign` builds the transport named by a :class:`SigningConfig` and
runs the signing pipeline. For lower-level control, call
:func:`~pdfseal.core.signing.sign_pdf` with a transport directly.
"""

from __future__ import annotations

__all__ = ["sign"]

import logging

from .config import SigningConfig
from .core.pdf import SignatureOptions
from .core.signing import sign_pdf
from .transports import create_transport

_logger = logging.getLogger(__name__)


def sign(
    pdf_bytes: bytes,
    config: SigningConfig | None = None,
    options: SignatureOptions | None = None,
) -> bytes:
    """
    Sign a PDF with the transport described by ``config``.

    Args:
        pdf_bytes: Raw, unsigned PDF with at least one page.
        config: Transport and certificate settings. Defaults to
            ``SigningConfig()``: the local transport with the
            development certificate path.
        options: Signature dictionary entries (reason, name, ...).

    Returns:
        The signed PDF bytes.

    Raises:
        UnsupportedTransportError: If the configured transport is unknown.
        CertificateError: If the certificate cannot be loaded.
        PDFError: On structural or capacity problems.
        VerificationError: If the signed output does not verify.
    """
    config = config or SigningConfig()
    transport = create_transport(config)
    _logger.debug("Signing with %r", transport)
    return sign_pdf(pdf_bytes, transport, options=options)
