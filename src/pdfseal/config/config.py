"""
Signing configuration for pdfseal.

The pipeline receives a :class:`SigningConfig` explicitly; nothing in the
core reads the process environment. :meth:`SigningConfig.from_env` exists
for callers that keep their settings in environment variables.
"""

from __future__ import annotations

__all__ = [
    "CertificateSource",
    "SigningConfig",
    "TransportKind",
    "resolve_certificate_source",
]

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal

from ..constants import (
    DEFAULT_CERTIFICATE_PATH,
    ENV_SIGNING_LOCAL_FILE_CONTENTS,
    ENV_SIGNING_LOCAL_FILE_PATH,
    ENV_SIGNING_PASSPHRASE,
    ENV_SIGNING_TRANSPORT,
)
from ..errors import UnsupportedTransportError

if TYPE_CHECKING:
    from collections.abc import Mapping

_logger = logging.getLogger(__name__)


class TransportKind(str, Enum):
    """Known signing transports.

    A new transport (e.g. a remote Cloud KMS/HSM signer selected as
    ``gcloud-hsm``) is added here and in
    :func:`pdfseal.transports.create_transport`.
    """

    LOCAL = "local"

    @classmethod
    def parse(cls, value: str | TransportKind) -> TransportKind:
        """Resolve a transport identifier, failing on unknown names."""
        if isinstance(value, TransportKind):
            return value
        if not isinstance(value, str):
            raise UnsupportedTransportError(repr(value))
        normalized = value.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise UnsupportedTransportError(value)


@dataclass(frozen=True)
class SigningConfig:
    """Transport and certificate settings for one signing call.

    Attributes:
        transport: Transport identifier, e.g. ``"local"``.
        certificate_contents: Base64-encoded PKCS#12 container. Takes
            precedence over ``certificate_path``.
        certificate_path: Path to a PKCS#12 file. Defaults to the
            development fixture when neither source is set.
        certificate_passphrase: PKCS#12 passphrase, or None for an
            unprotected container.
    """

    transport: str = TransportKind.LOCAL.value
    certificate_contents: str | None = None
    certificate_path: str | None = None
    certificate_passphrase: str | None = None

    def __repr__(self) -> str:
        # Keep key material and passphrase out of logs and tracebacks.
        contents = "<set>" if self.certificate_contents else None
        passphrase = "<set>" if self.certificate_passphrase else None
        return (
            f"SigningConfig(transport={self.transport!r}, "
            f"certificate_contents={contents!r}, "
            f"certificate_path={self.certificate_path!r}, "
            f"certificate_passphrase={passphrase!r})"
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SigningConfig:
        """Build a config from ``PDFSEAL_SIGNING_*`` environment variables.

        Empty values are treated as unset.
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = env.get(name, "").strip()
            return value or None

        transport = _get(ENV_SIGNING_TRANSPORT) or TransportKind.LOCAL.value
        config = cls(
            transport=transport,
            certificate_contents=_get(ENV_SIGNING_LOCAL_FILE_CONTENTS),
            certificate_path=_get(ENV_SIGNING_LOCAL_FILE_PATH),
            certificate_passphrase=_get(ENV_SIGNING_PASSPHRASE),
        )
        _logger.debug("Loaded signing config from environment: %r", config)
        return config


@dataclass(frozen=True)
class CertificateSource:
    """Where the PKCS#12 container comes from.

    ``kind`` is ``"inline"`` (``value`` is base64 text) or ``"file"``
    (``value`` is a filesystem path).
    """

    kind: Literal["inline", "file"]
    value: str

    def __repr__(self) -> str:
        shown = "<base64>" if self.kind == "inline" else self.value
        return f"CertificateSource(kind={self.kind!r}, value={shown!r})"


def resolve_certificate_source(config: SigningConfig) -> CertificateSource:
    """Pick the certificate source: inline contents, then file path, then the default path."""
    if config.certificate_contents:
        return CertificateSource("inline", config.certificate_contents)
    if config.certificate_path:
        return CertificateSource("file", config.certificate_path)
    _logger.debug("No certificate configured, using %s", DEFAULT_CERTIFICATE_PATH)
    return CertificateSource("file", DEFAULT_CERTIFICATE_PATH)
