# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Detached CMS/PKCS#7 SignedData construction and verification.

The structures are assembled with asn1crypto; the private-key operation
and signature checks go through the cryptography package.
"""

from __future__ import annotations

__all__ = [
    "build_detached_cms",
    "build_signed_attrs",
    "find_signer_cert",
    "signature_mechanism",
    "verify_cms_signature",
]

import hashlib
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from asn1crypto import algos, cms, core
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..constants import DEFAULT_DIGEST_ALGORITHM
from ..errors import CertificateError

if TYPE_CHECKING:
    from asn1crypto import x509 as asn1_x509

    from .certificates import CertificateBundle, SigningKey

_logger = logging.getLogger(__name__)


def _pyca_hash(digest_algorithm: str) -> hashes.HashAlgorithm:
    try:
        return getattr(hashes, digest_algorithm.upper())()
    except AttributeError as e:
        raise CertificateError(f"Unsupported digest algorithm: {digest_algorithm}") from e


def simple_cms_attribute(attr_type: str, value: object) -> cms.CMSAttribute:
    """Construct a CMS attribute with a single value."""
    return cms.CMSAttribute({"type": cms.CMSAttributeType(attr_type), "values": (value,)})


def signature_mechanism(
    private_key: SigningKey, digest_algorithm: str
) -> algos.SignedDigestAlgorithm:
    """SignerInfo signature algorithm for the key type, e.g. ``sha256_rsa``."""
    if isinstance(private_key, rsa.RSAPrivateKey):
        mech = f"{digest_algorithm}_rsa"
    elif isinstance(private_key, ec.EllipticCurvePrivateKey):
        mech = f"{digest_algorithm}_ecdsa"
    else:
        raise CertificateError(f"Unsupported private key type: {type(private_key).__name__}")
    return algos.SignedDigestAlgorithm({"algorithm": mech})


def sign_raw(private_key: SigningKey, data: bytes, digest_algorithm: str) -> bytes:
    """Raw signature over ``data`` (RSA PKCS#1 v1.5 or ECDSA)."""
    hash_algo = _pyca_hash(digest_algorithm)
    if isinstance(private_key, rsa.RSAPrivateKey):
        return private_key.sign(data, padding.PKCS1v15(), hash_algo)
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        return private_key.sign(data, ec.ECDSA(hash_algo))
    raise CertificateError(f"Unsupported private key type: {type(private_key).__name__}")


def build_signed_attrs(data_digest: bytes, signing_time: datetime) -> cms.CMSAttributes:
    """contentType, messageDigest, and signingTime attributes."""
    return cms.CMSAttributes(
        [
            simple_cms_attribute("content_type", "data"),
            simple_cms_attribute("message_digest", data_digest),
            simple_cms_attribute(
                "signing_time", cms.Time({"utc_time": core.UTCTime(signing_time)})
            ),
        ]
    )


def build_detached_cms(
    data: bytes,
    bundle: CertificateBundle,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
    signing_time: datetime | None = None,
) -> bytes:
    """
    Produce a detached CMS SignedData over ``data``.

    The content itself is not encapsulated. The signing certificate and
    every chain certificate from the bundle are embedded.

    Args:
        data: Bytes to sign (for PDFs, the ByteRange data).
        bundle: Key material.
        digest_algorithm: hashlib/asn1crypto digest name.
        signing_time: signingTime attribute; defaults to now (UTC).

    Returns:
        DER-encoded ContentInfo.
    """
    if signing_time is None:
        signing_time = datetime.now(timezone.utc)
    digest_algorithm = digest_algorithm.lower()

    data_digest = hashlib.new(digest_algorithm, data).digest()
    signed_attrs = build_signed_attrs(data_digest, signing_time)
    signature = sign_raw(bundle.private_key, signed_attrs.dump(), digest_algorithm)

    digest_algorithm_obj = algos.DigestAlgorithm({"algorithm": digest_algorithm})
    signing_cert = bundle.certificate
    signer_info = cms.SignerInfo(
        {
            "version": "v1",
            "sid": cms.SignerIdentifier(
                {
                    "issuer_and_serial_number": cms.IssuerAndSerialNumber(
                        {
                            "issuer": signing_cert.issuer,
                            "serial_number": signing_cert.serial_number,
                        }
                    )
                }
            ),
            "digest_algorithm": digest_algorithm_obj,
            "signature_algorithm": signature_mechanism(bundle.private_key, digest_algorithm),
            "signed_attrs": signed_attrs,
            "signature": signature,
        }
    )

    signed_data = cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": cms.DigestAlgorithms((digest_algorithm_obj,)),
            "encap_content_info": {"content_type": "data"},
            "certificates": [signing_cert, *bundle.chain],
            "signer_infos": [signer_info],
        }
    )
    content_info = cms.ContentInfo({"content_type": "signed_data", "content": signed_data})
    der = content_info.dump()
    _logger.debug("Built detached CMS: %d bytes, digest=%s", len(der), digest_algorithm)
    return der


# ── Verification ─────────────────────────────────────────────────────


def find_signer_cert(
    signed_data: cms.SignedData, signer_info: cms.SignerInfo
) -> asn1_x509.Certificate | None:
    """Return the embedded certificate named by the SignerInfo sid, if any."""
    sid = signer_info["sid"]
    if sid.name != "issuer_and_serial_number":
        return None
    issuer = sid.chosen["issuer"]
    serial = sid.chosen["serial_number"].native
    for choice in signed_data["certificates"]:
        if choice.name != "certificate":
            continue
        cert = choice.chosen
        if cert.serial_number == serial and cert.issuer == issuer:
            return cert
    return None


def verify_cms_signature(cms_der: bytes) -> tuple[bool, str]:
    """
    Check the SignerInfo signature against the embedded signer certificate.

    Only the signature over the signed attributes is checked here; the
    messageDigest-vs-data comparison is done by the caller.

    Returns:
        (ok, detail) -- never raises on malformed input.
    """
    try:
        content_info = cms.ContentInfo.load(cms_der)
        signed_data = content_info["content"]
        signer_info = signed_data["signer_infos"][0]
        cert = find_signer_cert(signed_data, signer_info)
        if cert is None:
            return False, "Signer certificate not found in CMS"

        # signed_attrs carry an implicit [0] tag; the signature covers the SET OF form.
        signed_bytes = signer_info["signed_attrs"].untag().dump()
        signature = signer_info["signature"].native
        digest_algorithm = signer_info["digest_algorithm"]["algorithm"].native
        hash_algo = _pyca_hash(digest_algorithm)
        public_key = serialization.load_der_public_key(cert.public_key.dump())
    except (ValueError, TypeError, KeyError, IndexError, CertificateError) as e:
        return False, f"Cannot parse CMS signer info: {e}"

    try:
        if isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signature, signed_bytes, padding.PKCS1v15(), hash_algo)
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, signed_bytes, ec.ECDSA(hash_algo))
        else:
            return False, f"Unsupported signer key type: {type(public_key).__name__}"
    except InvalidSignature:
        return False, "Signature does not verify against the signer certificate"
    return True, f"Signature OK -- verified with {cert.subject.human_friendly}"
