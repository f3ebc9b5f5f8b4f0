"""
PKCS#12 certificate loading.

Loads the private key, signing certificate, and any extra certificates
from a PKCS#12 container. Loaded bundles are immutable and cached for the
process lifetime, keyed by source and passphrase.
"""

from __future__ import annotations

__all__ = [
    "CertificateBundle",
    "load_certificate_bundle",
    "load_pkcs12",
    "read_certificate_source",
]

import base64
import binascii
import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Union

from asn1crypto import x509 as asn1_x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, pkcs12

from ..errors import CertificateError

if TYPE_CHECKING:
    from cryptography import x509
    from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes

    from ..config import CertificateSource

_logger = logging.getLogger(__name__)

SigningKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]


@dataclass(frozen=True)
class CertificateBundle:
    """Key material loaded from a PKCS#12 container.

    Attributes:
        private_key: RSA or EC private key.
        certificate: Certificate whose public key matches ``private_key``.
        chain: Remaining certificates from the container, in order.
    """

    private_key: SigningKey
    certificate: asn1_x509.Certificate
    chain: tuple[asn1_x509.Certificate, ...] = ()

    @property
    def subject(self) -> str:
        """Human-readable subject of the signing certificate."""
        return self.certificate.subject.human_friendly


def _to_asn1(cert: x509.Certificate) -> asn1_x509.Certificate:
    return asn1_x509.Certificate.load(cert.public_bytes(Encoding.DER))


def _public_key_der(key: PublicKeyTypes) -> bytes:
    return key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)


def load_pkcs12(data: bytes, passphrase: str | None = None) -> CertificateBundle:
    """
    Load key material from PKCS#12 bytes.

    The signing certificate is the one whose public key matches the
    private key; the container's main certificate is preferred, then the
    additional certificates are searched.

    Args:
        data: DER-encoded PKCS#12 container.
        passphrase: Container passphrase, or None for an unprotected one.

    Raises:
        CertificateError: On a wrong passphrase, corrupt data, a missing
            key or certificate, a key/certificate mismatch, or an
            unsupported key type.
    """
    password = passphrase.encode("utf-8") if passphrase else None
    try:
        private_key, main_cert, additional = pkcs12.load_key_and_certificates(data, password)
    except (ValueError, TypeError) as e:
        raise CertificateError(
            f"Cannot open PKCS#12 container (wrong passphrase or corrupt data): {e}"
        ) from e

    if private_key is None:
        raise CertificateError("PKCS#12 container holds no private key.")
    if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise CertificateError(
            f"Unsupported private key type: {type(private_key).__name__} (RSA or EC required)"
        )

    candidates = ([main_cert] if main_cert is not None else []) + list(additional)
    if not candidates:
        raise CertificateError("PKCS#12 container holds no certificate.")

    key_der = _public_key_der(private_key.public_key())
    signing_cert = next(
        (cert for cert in candidates if _public_key_der(cert.public_key()) == key_der), None
    )
    if signing_cert is None:
        raise CertificateError("Failed to find a certificate that matches the private key.")

    chain = tuple(_to_asn1(cert) for cert in candidates if cert is not signing_cert)
    bundle = CertificateBundle(private_key, _to_asn1(signing_cert), chain)
    _logger.debug("Loaded PKCS#12: subject=%s, chain=%d", bundle.subject, len(chain))
    return bundle


def read_certificate_source(source: CertificateSource) -> bytes:
    """Read raw PKCS#12 bytes from an inline base64 value or a file.

    Raises:
        CertificateError: If the file cannot be read or the base64 is invalid.
    """
    if source.kind == "inline":
        try:
            return base64.b64decode("".join(source.value.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise CertificateError(f"Inline certificate is not valid base64: {e}") from e

    path = Path(source.value)
    try:
        return path.read_bytes()
    except OSError as e:
        raise CertificateError(f"Cannot read certificate file {path}: {e}") from e


@functools.lru_cache(maxsize=16)
def load_certificate_bundle(
    source: CertificateSource, passphrase: str | None = None
) -> CertificateBundle:
    """Load and cache the bundle for a source/passphrase pair.

    Failures are not cached; a later call retries the load.
    """
    _logger.info("Loading signing certificate from %r", source)
    return load_pkcs12(read_certificate_source(source), passphrase)
