"""Tests for pdfseal.core.pdf.splice — writing the signature into /Contents."""

import pytest

from pdfseal.constants import CMS_HEX_SIZE, CMS_RESERVED_SIZE
from pdfseal.core.pdf import find_placeholder, insert_cms, insert_placeholder, splice_signature
from pdfseal.errors import PDFError, SignatureCapacityError

# ── insert_cms ──────────────────────────────────────────────────────


def test_insert_cms_basic():
    """CMS DER bytes should appear as hex in the correct position."""
    pdf = b"A" * 100 + b"0" * 20 + b"B" * 50
    cms_der = bytes([0x30, 0x82, 0x01, 0x00])

    result = insert_cms(pdf, 100, 20, cms_der)
    assert len(result) == len(pdf)
    hex_region = result[100:120].decode("ascii")
    assert hex_region == "30820100" + "0" * 12
    assert result[:100] == pdf[:100]
    assert result[120:] == pdf[120:]


def test_insert_cms_too_large():
    pdf = b"A" * 100 + b"0" * 10 + b"B" * 50
    cms_der = b"\x30" * 10  # 20 hex chars > 10 reserved

    with pytest.raises(SignatureCapacityError) as exc_info:
        insert_cms(pdf, 100, 10, cms_der)
    assert exc_info.value.required == 20
    assert exc_info.value.available == 10


def test_insert_cms_exact_fit():
    """CMS hex exactly fills the reserved space: no padding needed."""
    pdf = b"X" * 50 + b"0" * 8 + b"Y" * 30
    result = insert_cms(pdf, 50, 8, b"\xab\xcd\xef\x01")
    assert result[50:58] == b"abcdef01"


def test_insert_cms_empty():
    with pytest.raises(PDFError, match="empty"):
        insert_cms(b"0" * 10, 0, 10, b"")


# ── splice_signature ────────────────────────────────────────────────


def test_splice_signature_preserves_everything_else(valid_pdf_bytes):
    prepared = insert_placeholder(valid_pdf_bytes)
    layout = find_placeholder(prepared)
    signature = b"\x30\x03\x02\x01\x05"

    signed = splice_signature(prepared, signature)
    assert len(signed) == len(prepared)
    assert signed[: layout.hex_start] == prepared[: layout.hex_start]
    hex_end = layout.hex_start + layout.hex_len
    assert signed[hex_end:] == prepared[hex_end:]
    assert signed[layout.hex_start : hex_end] == b"3003020105" + b"0" * (CMS_HEX_SIZE - 10)


def test_splice_signature_max_size(valid_pdf_bytes):
    prepared = insert_placeholder(valid_pdf_bytes)
    signed = splice_signature(prepared, b"\x30" * CMS_RESERVED_SIZE)
    assert len(signed) == len(prepared)


def test_splice_signature_capacity_exceeded(valid_pdf_bytes):
    prepared = insert_placeholder(valid_pdf_bytes)
    with pytest.raises(SignatureCapacityError) as exc_info:
        splice_signature(prepared, b"\x30" * (CMS_RESERVED_SIZE + 1))
    assert exc_info.value.available == CMS_HEX_SIZE
    assert exc_info.value.required == (CMS_RESERVED_SIZE + 1) * 2


def test_splice_signature_requires_placeholder(valid_pdf_bytes):
    with pytest.raises(PDFError):
        splice_signature(valid_pdf_bytes, b"\x30\x00")
