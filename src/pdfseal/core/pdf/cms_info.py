# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Read the digest and signer identity back out of a detached CMS blob."""

from __future__ import annotations

import logging

from asn1crypto import cms as asn1_cms
from asn1crypto import x509 as asn1_x509

from ...errors import CertificateError
from ..cms import find_signer_cert

_logger = logging.getLogger(__name__)

# Plain digest algorithms, as asn1crypto names them in SignerInfo.digestAlgorithm.
_DIGEST_ALGORITHMS = frozenset({"sha1", "sha224", "sha256", "sha384", "sha512"})

_SUBJECT_FIELDS = {
    "common_name": "name",
    "email_address": "email",
    "organization_name": "organization",
}


def resolve_hash_algo(algo_name: str) -> str | None:
    """Map a SignerInfo digest algorithm name to a hashlib name, or None."""
    return algo_name if algo_name in _DIGEST_ALGORITHMS else None


def _first_signer(cms_der: bytes) -> tuple[asn1_cms.SignedData, asn1_cms.SignerInfo]:
    signed_data = asn1_cms.ContentInfo.load(cms_der)["content"]
    signer_infos = signed_data["signer_infos"]
    if not signer_infos:
        raise ValueError("CMS carries no SignerInfo")
    return signed_data, signer_infos[0]


def extract_digest_info(cms_der: bytes) -> tuple[str, bytes] | None:
    """Return ``(hashlib_name, messageDigest)`` of the first SignerInfo, or None."""
    try:
        _, signer_info = _first_signer(cms_der)
        algo_id = signer_info["digest_algorithm"]["algorithm"]
        algo_name = resolve_hash_algo(algo_id.native)
        if algo_name is None:
            _logger.debug("Unrecognized digest algorithm: %s", algo_id.dotted)
            return None
        for attr in signer_info["signed_attrs"]:
            if attr["type"].native == "message_digest" and attr["values"]:
                return algo_name, attr["values"][0].native
    except (ValueError, TypeError, KeyError, AttributeError, IndexError):
        _logger.debug("Could not extract digest info from CMS", exc_info=True)
    return None


def subject_info(cert: asn1_x509.Certificate) -> dict[str, str | None]:
    """CN, email, organization and the full DN of a certificate subject."""
    native = cert.subject.native
    fields: dict[str, str | None] = {
        key: native.get(name) for name, key in _SUBJECT_FIELDS.items()
    }
    fields["dn"] = cert.subject.human_friendly
    return fields


def extract_cert_info_from_cms(cms_der: bytes) -> dict[str, str | None]:
    """
    Identify the signer of a CMS/PKCS#7 DER blob.

    The certificate is the one the SignerInfo ``sid`` points at, not
    whichever certificate happens to be listed first.

    Returns:
        dict with keys: name (CN), email, organization, dn (full subject).

    Raises:
        CertificateError: If parsing fails or the signer certificate is not embedded.
    """
    try:
        signed_data, signer_info = _first_signer(cms_der)
        cert = find_signer_cert(signed_data, signer_info)
    except (ValueError, TypeError, KeyError, IndexError) as e:
        raise CertificateError(f"Failed to parse CMS/PKCS#7 blob: {e}") from e

    if cert is None:
        raise CertificateError("Signer certificate not found in CMS blob.")
    return subject_info(cert)


def extract_signer_info(cms_der: bytes) -> dict[str, str | None] | None:
    """Like extract_cert_info_from_cms, but returns None on failure."""
    try:
        return extract_cert_info_from_cms(cms_der)
    except CertificateError:
        _logger.debug("Could not extract signer info from CMS", exc_info=True)
        return None
