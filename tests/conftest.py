"""Shared test fixtures for the pdfseal test suite."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pikepdf
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    NoEncryption,
    pkcs12,
)
from cryptography.x509.oid import NameOID

from pdfseal.config import CertificateSource
from pdfseal.core.certificates import load_certificate_bundle
from pdfseal.transports import LocalCertificateTransport

TEST_PASSPHRASE = "correct horse battery staple"
TEST_SIGNER_CN = "pdfseal Test Signer"


def _save(pdf: pikepdf.Pdf) -> bytes:
    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "pdfseal tests"),
            x509.NameAttribute(NameOID.EMAIL_ADDRESS, "signer@example.com"),
        ]
    )


def make_certificate(key, subject: str, issuer_key=None, issuer: str | None = None):
    """Self-signed (or issuer-signed) certificate for ``key``."""
    signer = issuer_key or key
    # Ed25519 certificates are signed without a separate hash algorithm.
    algorithm = None if isinstance(signer, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer or subject))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
    )
    return builder.sign(signer, algorithm)


def make_pkcs12(key, cert, passphrase: str | None = TEST_PASSPHRASE, cas=None) -> bytes:
    encryption = (
        BestAvailableEncryption(passphrase.encode("utf-8")) if passphrase else NoEncryption()
    )
    return pkcs12.serialize_key_and_certificates(b"pdfseal-test", key, cert, cas, encryption)


# ── Key material ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def passphrase():
    return TEST_PASSPHRASE


@pytest.fixture(scope="session")
def signer_cn():
    return TEST_SIGNER_CN


@pytest.fixture(scope="session")
def pkcs12_factory():
    """Build PKCS#12 bytes: ``factory(key, cert, passphrase=..., cas=None)``."""
    return make_pkcs12


@pytest.fixture(scope="session")
def certificate_factory():
    """Build certificates: ``factory(key, subject, issuer_key=None, issuer=None)``."""
    return make_certificate


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_cert(rsa_key):
    return make_certificate(rsa_key, TEST_SIGNER_CN)


@pytest.fixture(scope="session")
def p12_bytes(rsa_key, rsa_cert):
    """RSA signing key + self-signed certificate, protected by TEST_PASSPHRASE."""
    return make_pkcs12(rsa_key, rsa_cert)


@pytest.fixture(scope="session")
def ec_p12_bytes():
    key = ec.generate_private_key(ec.SECP256R1())
    return make_pkcs12(key, make_certificate(key, "pdfseal EC Signer"))


@pytest.fixture
def p12_file(tmp_path, p12_bytes):
    path = tmp_path / "signer.p12"
    path.write_bytes(p12_bytes)
    return path


@pytest.fixture
def local_transport(p12_file):
    return LocalCertificateTransport(CertificateSource("file", str(p12_file)), TEST_PASSPHRASE)


@pytest.fixture(autouse=True)
def _clear_certificate_cache():
    load_certificate_bundle.cache_clear()
    yield
    load_certificate_bundle.cache_clear()


# ── PDFs ────────────────────────────────────────────────────────────


@pytest.fixture
def valid_pdf_bytes():
    """Create a minimal single-page PDF using pikepdf."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    return _save(pdf)


@pytest.fixture
def multi_page_pdf_bytes():
    pdf = pikepdf.Pdf.new()
    for _ in range(3):
        pdf.add_blank_page(page_size=(612, 792))
    return _save(pdf)


@pytest.fixture
def zero_page_pdf_bytes():
    return _save(pikepdf.Pdf.new())


@pytest.fixture
def encrypted_pdf_bytes():
    """Single page, encrypted with an owner password and an empty user password."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    buf = io.BytesIO()
    pdf.save(buf, encryption=pikepdf.Encryption(owner="owner-secret", user=""))
    return buf.getvalue()


@pytest.fixture
def annotated_pdf_bytes():
    """Single page carrying one link annotation."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    link = pdf.make_indirect(
        pikepdf.Dictionary(
            Type=pikepdf.Name.Annot,
            Subtype=pikepdf.Name.Link,
            Rect=pikepdf.Array([10, 10, 100, 40]),
            Border=pikepdf.Array([0, 0, 0]),
        )
    )
    pdf.pages[0].obj["/Annots"] = pikepdf.Array([link])
    return _save(pdf)


def _form_pdf(field_type: pikepdf.Name, name: str) -> bytes:
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    page = pdf.pages[0].obj
    field = pdf.make_indirect(
        pikepdf.Dictionary(
            Type=pikepdf.Name.Annot,
            Subtype=pikepdf.Name.Widget,
            FT=field_type,
            T=pikepdf.String(name),
            Rect=pikepdf.Array([50, 50, 200, 80]),
            P=page,
        )
    )
    page["/Annots"] = pikepdf.Array([field])
    pdf.Root["/AcroForm"] = pikepdf.Dictionary(
        Fields=pikepdf.Array([field]),
        DA=pikepdf.String("/Helv 0 Tf 0 g"),
    )
    return _save(pdf)


@pytest.fixture
def acroform_pdf_bytes():
    """Single page with an existing AcroForm holding one text field."""
    return _form_pdf(pikepdf.Name.Tx, "comments")


@pytest.fixture
def empty_sig_field_pdf_bytes():
    """AcroForm with a signature field that has no value yet."""
    return _form_pdf(pikepdf.Name.Sig, "approval")
