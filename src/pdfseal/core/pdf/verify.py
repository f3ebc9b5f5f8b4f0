"""
Verification of embedded PDF signatures.

Extracts ByteRange data and the CMS blob, checks the ByteRange layout,
compares the data digest with the CMS messageDigest, and verifies the
signer's signature against the embedded certificate.
"""

from __future__ import annotations

import hashlib
import io
import logging
from typing import TypedDict

from ...errors import PdfSealError
from .. import require_pikepdf as _require_pikepdf
from ..cms import verify_cms_signature
from .asn1 import ASN1_SEQUENCE_TAG, MIN_CMS_SIZE
from .byterange import extract_cms, extract_signed_data, find_byterange
from .cms_info import extract_digest_info, extract_signer_info

_logger = logging.getLogger(__name__)


class VerificationResult(TypedDict):
    """Result of signature verification."""

    valid: bool  # Overall result
    structure_ok: bool  # ByteRange and CMS structure valid
    hash_ok: bool  # ByteRange digest matches CMS messageDigest
    signature_ok: bool  # Signer signature verifies against its certificate
    details: list[str]  # Human-readable messages
    signer: dict[str, str | None] | None  # Certificate info (name, email, org, dn)


def _failed(details: list[str]) -> VerificationResult:
    return {
        "valid": False,
        "structure_ok": False,
        "hash_ok": False,
        "signature_ok": False,
        "details": details,
        "signer": None,
    }


def verify_detached_signature(data_bytes: bytes, cms_der: bytes) -> VerificationResult:
    """Verify a detached CMS/PKCS#7 signature against the data it covers.

    Args:
        data_bytes: The data that was signed.
        cms_der: The detached CMS/PKCS#7 signature (DER-encoded).

    Returns:
        VerificationResult; never raises on verification failure.
    """
    details: list[str] = []

    if len(cms_der) < MIN_CMS_SIZE:
        return _failed([f"CMS too small ({len(cms_der)} bytes) -- likely corrupt"])
    if cms_der[0] != ASN1_SEQUENCE_TAG:
        return _failed(["CMS does not start with ASN.1 SEQUENCE tag (0x30)"])
    details.append(f"CMS blob: {len(cms_der)} bytes, valid ASN.1 structure")

    signer = extract_signer_info(cms_der)
    if signer and signer.get("name"):
        details.append(f"Signer: {signer['name']}")

    hash_ok = False
    digest_info = extract_digest_info(cms_der)
    if digest_info is not None:
        algo_name, cms_digest = digest_info
        actual_hash = hashlib.new(algo_name, data_bytes).digest()
        algo_upper = algo_name.upper().replace("_", "-")
        if actual_hash == cms_digest:
            hash_ok = True
            details.append(f"Hash OK -- {algo_upper} matches CMS messageDigest: {actual_hash.hex()}")
        else:
            details.append(
                f"Hash MISMATCH!\n"
                f"  Data {algo_upper}:        {actual_hash.hex()}\n"
                f"  CMS messageDigest:  {cms_digest.hex()}"
            )
    else:
        details.append("Could not extract digest info -- hash verification unavailable")

    signature_ok, signature_detail = verify_cms_signature(cms_der)
    details.append(signature_detail)

    return {
        "valid": hash_ok and signature_ok,
        "structure_ok": True,
        "hash_ok": hash_ok,
        "signature_ok": signature_ok,
        "details": details,
        "signer": signer,
    }


def verify_embedded_signature(pdf_bytes: bytes) -> VerificationResult:
    """
    Verify the last embedded PDF signature.

    Checks:
    1. Structure -- ByteRange starts at 0, brackets ``<hex>`` exactly,
       stays within the file, and the CMS is a DER SEQUENCE.
    2. Hash -- digest of the ByteRange data equals the CMS messageDigest.
    3. Signature -- the signed attributes verify against the signer
       certificate embedded in the CMS.

    Never raises on verification failure -- returns valid=False with details.
    """
    try:
        byterange = find_byterange(pdf_bytes)
        signed_data = extract_signed_data(pdf_bytes, byterange)
        cms_der = extract_cms(pdf_bytes, byterange)
    except PdfSealError as e:
        return _failed([f"Structure error: {e}"])

    result = verify_detached_signature(signed_data, cms_der)
    prefix = [f"ByteRange OK -- {list(byterange)}, signed data: {len(signed_data)} bytes"]
    if byterange.start1 + byterange.length1 != len(pdf_bytes):
        # Bytes appended after signing are not covered.
        prefix.append(
            f"ByteRange does not cover the whole file: ends at "
            f"{byterange.start1 + byterange.length1} of {len(pdf_bytes)}"
        )
        result["structure_ok"] = False
        result["valid"] = False
    result["details"][:0] = prefix

    # pikepdf structural check (informational, does not override signature validity).
    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
        result["details"].append(f"pikepdf: valid PDF, {page_count} page(s)")
    except (ValueError, RuntimeError, OSError, pikepdf.PdfError) as e:
        _logger.warning("pikepdf structural check failed (non-fatal): %s", e)
        result["details"].append(f"pikepdf: structural warning -- {e}")

    return result
