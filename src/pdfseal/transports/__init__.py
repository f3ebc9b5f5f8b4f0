"""Signing transports and transport selection."""

from __future__ import annotations

import logging

from ..config import SigningConfig, TransportKind
from ..errors import UnsupportedTransportError
from .local import LocalCertificateTransport
from .protocol import SigningTransport

__all__ = ["LocalCertificateTransport", "SigningTransport", "create_transport"]

_logger = logging.getLogger(__name__)


def create_transport(config: SigningConfig) -> SigningTransport:
    """
    Build the transport named by ``config.transport``.

    Key material is not touched here; it loads on the first sign().

    Raises:
        UnsupportedTransportError: If the identifier names no known transport.
    """
    kind = TransportKind.parse(config.transport)
    _logger.debug("Selected signing transport: %s", kind.value)
    if kind is TransportKind.LOCAL:
        return LocalCertificateTransport.from_config(config)
    # Reached only if a TransportKind member has no implementation yet.
    raise UnsupportedTransportError(kind.value)
