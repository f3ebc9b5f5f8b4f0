"""
Embedded PDF signing pipeline.

The pipeline is transport-agnostic: any object implementing
:class:`~pdfseal.transports.protocol.SigningTransport` produces the
signature. Each call walks UNSIGNED -> PLACEHOLDER_INSERTED -> HASHED ->
SIGNED -> SPLICED; only the SPLICED result leaves the function.
"""

from __future__ import annotations

__all__ = [
    "SigningRun",
    "SigningStage",
    "sign_pdf",
]

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import PDFError, PdfSealError, VerificationError
from .pdf import (
    SignatureOptions,
    compute_byterange_hash,
    insert_placeholder,
    splice_signature,
    validate_pdf,
    verify_embedded_signature,
)

if TYPE_CHECKING:
    from ..transports.protocol import SigningTransport

_logger = logging.getLogger(__name__)


class SigningStage(Enum):
    """Per-call signing state."""

    UNSIGNED = "unsigned"
    PLACEHOLDER_INSERTED = "placeholder_inserted"
    HASHED = "hashed"
    SIGNED = "signed"
    SPLICED = "spliced"


_NEXT_STAGE = {
    SigningStage.UNSIGNED: SigningStage.PLACEHOLDER_INSERTED,
    SigningStage.PLACEHOLDER_INSERTED: SigningStage.HASHED,
    SigningStage.HASHED: SigningStage.SIGNED,
    SigningStage.SIGNED: SigningStage.SPLICED,
}


class SigningRun:
    """Tracks the stage of one signing call; transitions cannot be skipped."""

    def __init__(self) -> None:
        self.stage = SigningStage.UNSIGNED

    def advance(self, to: SigningStage) -> None:
        expected = _NEXT_STAGE.get(self.stage)
        if to is not expected:
            raise PdfSealError(
                f"Invalid signing transition: {self.stage.value} -> {to.value}"
            )
        _logger.debug("Signing stage: %s -> %s", self.stage.value, to.value)
        self.stage = to


def sign_pdf(
    pdf_bytes: bytes,
    transport: SigningTransport,
    options: SignatureOptions | None = None,
    verify: bool = True,
) -> bytes:
    """
    Sign a PDF with an embedded, invisible signature.

    1. Insert the signature placeholder and resolve the ByteRange
    2. Hash the ByteRange data
    3. Ask the transport for a detached signature
    4. Splice the signature into the Contents placeholder
    5. Verify the result (unless ``verify=False``)

    Args:
        pdf_bytes: Raw, unsigned PDF with at least one page.
        transport: SigningTransport implementation.
        options: Signature dictionary entries.
        verify: Re-verify the signed output before returning it.

    Returns:
        Complete PDF with embedded signature.

    Raises:
        PDFError: Structural problems, including SignatureCapacityError.
        CertificateError: Key material cannot be loaded.
        VerificationError: The signed output does not verify.
    """
    validate_pdf(pdf_bytes)
    run = SigningRun()
    _logger.info("Signing PDF (embedded): %d bytes", len(pdf_bytes))

    prepared = insert_placeholder(pdf_bytes, options)
    run.advance(SigningStage.PLACEHOLDER_INSERTED)

    br_hash = compute_byterange_hash(prepared)
    run.advance(SigningStage.HASHED)

    signature = transport.sign(prepared)
    if not signature:
        raise PDFError("Signing transport returned an empty signature.")
    _logger.debug("Received CMS: %d bytes", len(signature))
    run.advance(SigningStage.SIGNED)

    signed_pdf = splice_signature(prepared, signature)
    run.advance(SigningStage.SPLICED)

    if verify:
        _verify_signed(signed_pdf, br_hash)

    _logger.info("Signed PDF complete: %d bytes", len(signed_pdf))
    return signed_pdf


def _verify_signed(signed_pdf: bytes, br_hash: bytes) -> None:
    if compute_byterange_hash(signed_pdf) != br_hash:
        raise VerificationError("ByteRange data changed while splicing the signature.")
    result = verify_embedded_signature(signed_pdf)
    if not result["valid"]:
        detail_str = "\n  ".join(result["details"])
        _logger.error("Post-sign verification failed: %s", detail_str)
        raise VerificationError(f"Post-sign verification FAILED:\n  {detail_str}")
    _logger.debug("Signature verified successfully")
