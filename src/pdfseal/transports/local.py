"""
Local certificate signing transport.

Implements SigningTransport with a PKCS#12 container available to the
process, either inline (base64) or on disk.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ..config import CertificateSource, TransportKind, resolve_certificate_source
from ..constants import DEFAULT_DIGEST_ALGORITHM
from ..core.certificates import load_certificate_bundle
from ..core.cms import build_detached_cms
from ..core.pdf import byterange_data

if TYPE_CHECKING:
    from ..config import SigningConfig
    from ..core.certificates import CertificateBundle

_logger = logging.getLogger(__name__)


class LocalCertificateTransport:
    """PKCS#12-backed implementation of the SigningTransport protocol.

    The container is loaded lazily on first use and shared process-wide
    through the certificate cache.
    """

    kind = TransportKind.LOCAL

    def __init__(
        self,
        source: CertificateSource,
        passphrase: str | None = None,
        digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
    ) -> None:
        """
        Initialize the transport.

        Args:
            source: Inline base64 or file path of the PKCS#12 container.
            passphrase: Container passphrase, or None if unprotected.
            digest_algorithm: Digest used for the ByteRange data.
        """
        self.source = source
        self.passphrase = passphrase
        self.digest_algorithm = digest_algorithm

    @classmethod
    def from_config(cls, config: SigningConfig) -> LocalCertificateTransport:
        """Create a transport from the certificate settings of a SigningConfig."""
        return cls(resolve_certificate_source(config), config.certificate_passphrase)

    def __repr__(self) -> str:
        return f"LocalCertificateTransport(source={self.source!r})"

    @property
    def bundle(self) -> CertificateBundle:
        """Key material for this transport (cached per source and passphrase)."""
        return load_certificate_bundle(self.source, self.passphrase)

    def sign(self, document: bytes, signing_time: datetime | None = None) -> bytes:
        """Sign the ByteRange data of a prepared document with the local key."""
        data = byterange_data(document)
        bundle = self.bundle
        _logger.info("Signing %d bytes of ByteRange data as %s", len(data), bundle.subject)
        cms_der = build_detached_cms(
            data, bundle, digest_algorithm=self.digest_algorithm, signing_time=signing_time
        )
        _logger.info("Produced CMS signature: %d bytes", len(cms_der))
        return cms_der
