"""Splice a DER signature into the reserved /Contents span of a prepared PDF."""

from __future__ import annotations

import logging

from ...errors import PDFError, SignatureCapacityError
from .builder import find_placeholder

_logger = logging.getLogger(__name__)


def insert_cms(pdf_bytes: bytes, hex_start: int, hex_len: int, cms_der: bytes) -> bytes:
    """Write the CMS DER bytes as zero-padded hex over ``[hex_start, hex_start + hex_len)``.

    Raises:
        PDFError: If the CMS blob is empty.
        SignatureCapacityError: If its hex form is longer than ``hex_len``.
    """
    if not cms_der:
        raise PDFError("Cannot splice an empty signature.")
    cms_hex = cms_der.hex()
    if len(cms_hex) > hex_len:
        raise SignatureCapacityError(len(cms_hex), hex_len)
    cms_hex_padded = cms_hex + "0" * (hex_len - len(cms_hex))

    result = bytearray(pdf_bytes)
    result[hex_start : hex_start + hex_len] = cms_hex_padded.encode("ascii")
    return bytes(result)


def splice_signature(pdf_bytes: bytes, signature: bytes) -> bytes:
    """
    Embed a detached signature into a placeholder-bearing PDF.

    The Contents span is located from the document's ByteRange; only
    bytes inside it change and the total length is preserved.

    Args:
        pdf_bytes: Output of :func:`~pdfseal.core.pdf.builder.insert_placeholder`.
        signature: DER-encoded CMS/PKCS#7 signature.

    Returns:
        The signed PDF bytes.

    Raises:
        PDFError: If the placeholder cannot be located.
        SignatureCapacityError: If the signature does not fit.
    """
    layout = find_placeholder(pdf_bytes)
    signed_pdf = insert_cms(pdf_bytes, layout.hex_start, layout.hex_len, signature)
    if len(signed_pdf) != len(pdf_bytes):
        raise PDFError(f"Signature splice changed PDF size: {len(pdf_bytes)} -> {len(signed_pdf)}")
    _logger.debug(
        "Spliced %d-byte signature into %d hex chars at offset %d",
        len(signature),
        layout.hex_len,
        layout.hex_start,
    )
    return signed_pdf
