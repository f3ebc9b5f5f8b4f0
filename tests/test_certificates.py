"""Tests for pdfseal.core.certificates — PKCS#12 loading and caching."""

import base64
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from pdfseal.config import CertificateSource
from pdfseal.core.certificates import (
    load_certificate_bundle,
    load_pkcs12,
    read_certificate_source,
)
from pdfseal.errors import CertificateError

# ── load_pkcs12 ─────────────────────────────────────────────────────


def test_load_pkcs12_rsa(p12_bytes, passphrase, signer_cn):
    bundle = load_pkcs12(p12_bytes, passphrase)
    assert isinstance(bundle.private_key, rsa.RSAPrivateKey)
    assert signer_cn in bundle.subject
    assert bundle.chain == ()


def test_load_pkcs12_ec(ec_p12_bytes, passphrase):
    bundle = load_pkcs12(ec_p12_bytes, passphrase)
    assert isinstance(bundle.private_key, ec.EllipticCurvePrivateKey)


def test_load_pkcs12_wrong_passphrase(p12_bytes):
    with pytest.raises(CertificateError, match="wrong passphrase or corrupt"):
        load_pkcs12(p12_bytes, "not the passphrase")


def test_load_pkcs12_missing_passphrase(p12_bytes):
    with pytest.raises(CertificateError):
        load_pkcs12(p12_bytes, None)


def test_load_pkcs12_corrupt():
    with pytest.raises(CertificateError):
        load_pkcs12(b"definitely not a pkcs12 container", "x")


def test_load_pkcs12_unprotected(rsa_key, rsa_cert, pkcs12_factory):
    data = pkcs12_factory(rsa_key, rsa_cert, passphrase=None)
    bundle = load_pkcs12(data, None)
    assert bundle.certificate.serial_number == rsa_cert.serial_number


def test_load_pkcs12_with_chain(rsa_key, pkcs12_factory, certificate_factory, passphrase):
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = certificate_factory(ca_key, "pdfseal Test CA")
    leaf = certificate_factory(rsa_key, "pdfseal Leaf", issuer_key=ca_key, issuer="pdfseal Test CA")

    bundle = load_pkcs12(pkcs12_factory(rsa_key, leaf, cas=[ca_cert]), passphrase)
    assert "pdfseal Leaf" in bundle.subject
    assert len(bundle.chain) == 1
    assert "pdfseal Test CA" in bundle.chain[0].subject.human_friendly


def test_load_pkcs12_key_mismatch(rsa_key, rsa_cert, certificate_factory):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    other_cert = certificate_factory(other_key, "Someone Else")
    with patch(
        "pdfseal.core.certificates.pkcs12.load_key_and_certificates",
        return_value=(rsa_key, other_cert, []),
    ):
        with pytest.raises(CertificateError, match="matches the private key"):
            load_pkcs12(b"ignored", None)


def test_load_pkcs12_finds_matching_cert_in_additional(rsa_key, rsa_cert, certificate_factory):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    other_cert = certificate_factory(other_key, "Someone Else")
    with patch(
        "pdfseal.core.certificates.pkcs12.load_key_and_certificates",
        return_value=(rsa_key, other_cert, [rsa_cert]),
    ):
        bundle = load_pkcs12(b"ignored", None)
    assert bundle.certificate.serial_number == rsa_cert.serial_number
    assert len(bundle.chain) == 1


def test_load_pkcs12_no_key(rsa_cert):
    with patch(
        "pdfseal.core.certificates.pkcs12.load_key_and_certificates",
        return_value=(None, rsa_cert, []),
    ):
        with pytest.raises(CertificateError, match="no private key"):
            load_pkcs12(b"ignored", None)


def test_load_pkcs12_no_certificate(rsa_key):
    with patch(
        "pdfseal.core.certificates.pkcs12.load_key_and_certificates",
        return_value=(rsa_key, None, []),
    ):
        with pytest.raises(CertificateError, match="no certificate"):
            load_pkcs12(b"ignored", None)


def test_load_pkcs12_unsupported_key(pkcs12_factory, certificate_factory, passphrase):
    key = ed25519.Ed25519PrivateKey.generate()
    cert = certificate_factory(key, "Ed Signer")
    with pytest.raises(CertificateError, match="Unsupported private key type"):
        load_pkcs12(pkcs12_factory(key, cert), passphrase)


# ── read_certificate_source ─────────────────────────────────────────


def test_read_source_file(p12_file, p12_bytes):
    assert read_certificate_source(CertificateSource("file", str(p12_file))) == p12_bytes


def test_read_source_missing_file(tmp_path):
    source = CertificateSource("file", str(tmp_path / "missing.p12"))
    with pytest.raises(CertificateError, match="Cannot read certificate file"):
        read_certificate_source(source)


def test_read_source_inline_with_whitespace(p12_bytes):
    encoded = base64.b64encode(p12_bytes).decode("ascii")
    wrapped = "\n".join(encoded[i : i + 64] for i in range(0, len(encoded), 64))
    assert read_certificate_source(CertificateSource("inline", wrapped)) == p12_bytes


def test_read_source_inline_invalid():
    with pytest.raises(CertificateError, match="not valid base64"):
        read_certificate_source(CertificateSource("inline", "***not base64***"))


# ── load_certificate_bundle ─────────────────────────────────────────


def test_bundle_is_cached(p12_file, passphrase):
    source = CertificateSource("file", str(p12_file))
    first = load_certificate_bundle(source, passphrase)
    p12_file.unlink()
    assert load_certificate_bundle(source, passphrase) is first


def test_bundle_failure_not_cached(tmp_path, p12_bytes, passphrase):
    path = tmp_path / "later.p12"
    source = CertificateSource("file", str(path))
    with pytest.raises(CertificateError):
        load_certificate_bundle(source, passphrase)
    path.write_bytes(p12_bytes)
    assert load_certificate_bundle(source, passphrase).private_key is not None


def test_bundle_is_immutable(p12_file, passphrase):
    bundle = load_certificate_bundle(CertificateSource("file", str(p12_file)), passphrase)
    with pytest.raises(AttributeError):
        bundle.chain = ()  # type: ignore[misc]
