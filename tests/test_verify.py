"""Tests for pdfseal.core.pdf.verify — embedded and detached verification."""

import pytest

from pdfseal.core.certificates import load_pkcs12
from pdfseal.core.cms import build_detached_cms
from pdfseal.core.pdf import (
    extract_signature_data,
    insert_placeholder,
    verify_detached_signature,
    verify_embedded_signature,
)
from pdfseal.core.signing import sign_pdf


@pytest.fixture
def signed_pdf(valid_pdf_bytes, local_transport):
    return sign_pdf(valid_pdf_bytes, local_transport)


def test_verify_embedded_valid(signed_pdf, signer_cn):
    result = verify_embedded_signature(signed_pdf)
    assert result["valid"], result["details"]
    assert result["structure_ok"]
    assert result["hash_ok"]
    assert result["signature_ok"]
    assert result["signer"]["name"] == signer_cn
    assert any("pikepdf: valid PDF, 1 page(s)" in d for d in result["details"])


def test_verify_embedded_unsigned(valid_pdf_bytes):
    result = verify_embedded_signature(valid_pdf_bytes)
    assert not result["valid"]
    assert not result["structure_ok"]
    assert "Structure error" in result["details"][0]


def test_verify_embedded_placeholder_only(valid_pdf_bytes):
    result = verify_embedded_signature(insert_placeholder(valid_pdf_bytes))
    assert not result["valid"]


def test_verify_embedded_modified_content(signed_pdf):
    tampered = bytearray(signed_pdf)
    tampered[1] = ord("X")  # inside the first ByteRange chunk
    result = verify_embedded_signature(bytes(tampered))
    assert not result["valid"]
    assert not result["hash_ok"]
    assert result["signature_ok"]


def test_verify_embedded_appended_bytes(signed_pdf):
    result = verify_embedded_signature(signed_pdf + b"\n% appended after signing\n")
    assert not result["valid"]
    assert not result["structure_ok"]
    assert any("does not cover the whole file" in d for d in result["details"])


def test_extract_signature_data(signed_pdf):
    data, cms_der = extract_signature_data(signed_pdf)
    assert cms_der[0] == 0x30
    assert len(data) < len(signed_pdf)
    assert verify_detached_signature(data, cms_der)["valid"]


def test_verify_detached_signature(p12_bytes, passphrase):
    bundle = load_pkcs12(p12_bytes, passphrase)
    der = build_detached_cms(b"payload", bundle)

    assert verify_detached_signature(b"payload", der)["valid"]

    wrong = verify_detached_signature(b"other payload", der)
    assert not wrong["valid"]
    assert not wrong["hash_ok"]
    assert wrong["signature_ok"]


def test_verify_detached_signature_too_small():
    result = verify_detached_signature(b"data", b"\x30\x03\x01\x01\xff")
    assert not result["valid"]
    assert "too small" in result["details"][0]


def test_verify_detached_signature_not_sequence():
    result = verify_detached_signature(b"data", b"\x04" + b"\x00" * 200)
    assert not result["valid"]
    assert "SEQUENCE" in result["details"][0]
