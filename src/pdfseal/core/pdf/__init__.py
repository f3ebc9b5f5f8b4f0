"""PDF placeholder preparation, signature splicing, and verification."""

from .builder import (
    SignatureOptions,
    byterange_data,
    compute_byterange_hash,
    find_placeholder,
    insert_placeholder,
    validate_pdf,
)
from .byterange import (
    BYTERANGE_PATTERN,
    ByteRange,
    extract_cms,
    extract_signature_data,
    extract_signed_data,
    find_byterange,
)
from .incremental import PlaceholderLayout, normalize_pdf, patch_byterange
from .objects import BYTERANGE_PLACEHOLDER, CONTENTS_PLACEHOLDER, pdf_string
from .splice import insert_cms, splice_signature
from .verify import VerificationResult, verify_detached_signature, verify_embedded_signature

__all__ = [
    "BYTERANGE_PATTERN",
    "BYTERANGE_PLACEHOLDER",
    "CONTENTS_PLACEHOLDER",
    "ByteRange",
    "PlaceholderLayout",
    "SignatureOptions",
    "VerificationResult",
    "byterange_data",
    "compute_byterange_hash",
    "extract_cms",
    "extract_signature_data",
    "extract_signed_data",
    "find_byterange",
    "find_placeholder",
    "insert_cms",
    "insert_placeholder",
    "normalize_pdf",
    "patch_byterange",
    "pdf_string",
    "splice_signature",
    "validate_pdf",
    "verify_detached_signature",
    "verify_embedded_signature",
]
