"""
Package-wide constants for pdfseal.

Placeholder sizes, sentinels, default paths, and environment variable
names are centralized here.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("pdfseal")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "APP_NAME",
    "BYTERANGE_SENTINEL",
    "CMS_HEX_SIZE",
    "CMS_RESERVED_SIZE",
    "DEFAULT_CERTIFICATE_PATH",
    "DEFAULT_DIGEST_ALGORITHM",
    "DEFAULT_REASON",
    "ENV_SIGNING_LOCAL_FILE_CONTENTS",
    "ENV_SIGNING_LOCAL_FILE_PATH",
    "ENV_SIGNING_PASSPHRASE",
    "ENV_SIGNING_TRANSPORT",
    "PDF_MAGIC",
    "SIG_FILTER",
    "SIG_SUBFILTER",
    "__version__",
]

APP_NAME = "pdfseal"


# ── Signature placeholder ────────────────────────────────────────────

# Bytes reserved for the DER-encoded CMS container. An RSA-2048 signature
# with its certificate is ~1.5 KB; a short chain still fits comfortably.
CMS_RESERVED_SIZE = 8192
CMS_HEX_SIZE = CMS_RESERVED_SIZE * 2

# Written into the three variable ByteRange slots before offsets are known.
# Its width bounds the largest offset that can be patched in (10 digits).
BYTERANGE_SENTINEL = "/**********"


# ── Signature dictionary ─────────────────────────────────────────────

SIG_FILTER = "Adobe.PPKLite"
SIG_SUBFILTER = "adbe.pkcs7.detached"
DEFAULT_REASON = "Signed by pdfseal"

# hashlib / asn1crypto name of the digest used for the ByteRange data
DEFAULT_DIGEST_ALGORITHM = "sha256"


# ── Certificate source ───────────────────────────────────────────────

# Development fixture, relative to the working directory
DEFAULT_CERTIFICATE_PATH = "resources/certificate.p12"


# ── Environment variable names ──────────────────────────────────────

ENV_SIGNING_TRANSPORT = "PDFSEAL_SIGNING_TRANSPORT"
ENV_SIGNING_LOCAL_FILE_CONTENTS = "PDFSEAL_SIGNING_LOCAL_FILE_CONTENTS"
ENV_SIGNING_LOCAL_FILE_PATH = "PDFSEAL_SIGNING_LOCAL_FILE_PATH"
ENV_SIGNING_PASSPHRASE = "PDFSEAL_SIGNING_PASSPHRASE"


# PDF file magic bytes
PDF_MAGIC = b"%PDF-"
