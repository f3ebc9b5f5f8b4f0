"""PDF signature placeholder preparation.

High-level API for inserting an empty signature field into a PDF,
locating the reserved Contents span, and hashing the ByteRange data.

Low-level PDF object building is in objects.py.
Structure analysis and xref/trailer assembly are in incremental.py.
Signature insertion is in splice.py; verification in verify.py.
"""

from __future__ import annotations

import hashlib
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ...constants import DEFAULT_DIGEST_ALGORITHM, DEFAULT_REASON, PDF_MAGIC
from ...errors import PDFError
from .. import require_pikepdf as _require_pikepdf
from .byterange import (
    BYTERANGE_PATTERN,
    byterange_from_match,
    check_contents_delimiters,
    extract_signed_data,
)
from .incremental import (
    PlaceholderLayout,
    assemble_incremental_update,
    extract_trailer_entries,
    find_first_page,
    find_prev_startxref,
    find_root_obj_num,
    normalize_pdf,
    patch_byterange,
)
from .objects import (
    allocate_sig_objects,
    build_catalog_override,
    build_page_override,
    build_sig_dict,
    build_sig_widget,
)

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SignatureOptions:
    """Entries written into the signature dictionary.

    Attributes:
        reason: /Reason text.
        name: Optional signer display name (/Name).
        location: Optional signing location (/Location).
        contact_info: Optional signer contact (/ContactInfo).
        signing_time: Value of /M; defaults to the current UTC time.
    """

    reason: str = DEFAULT_REASON
    name: str | None = None
    location: str | None = None
    contact_info: str | None = None
    signing_time: datetime = field(default_factory=_utcnow)


def validate_pdf(pdf_bytes: bytes) -> None:
    """Raise PDFError if bytes don't look like a PDF."""
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        raise PDFError("Input does not appear to be a PDF file.")


def _to_bytes(raw: str | bytes) -> bytes:
    """Convert a raw PDF object (str or bytes) to bytes."""
    return raw if isinstance(raw, bytes) else raw.encode("latin-1")


def insert_placeholder(pdf_bytes: bytes, options: SignatureOptions | None = None) -> bytes:
    """
    Prepare a PDF with an empty, invisible signature field.

    The input is re-serialized without object streams, then an
    incremental update appends the signature dictionary, the widget
    annotation, and overrides of the first page (/Annots) and the
    catalog (/AcroForm). The ByteRange is resolved in place after
    serialization; the Contents hex string stays zero-filled.

    Args:
        pdf_bytes: Raw, unsigned PDF content with at least one page.
        options: Signature dictionary entries. Defaults to SignatureOptions().

    Returns:
        The placeholder-bearing PDF bytes.

    Raises:
        PDFError: If the input is not a PDF, has no pages, is already
            signed, or the placeholder cannot be located after serialization.
    """
    validate_pdf(pdf_bytes)
    opts = options or SignatureOptions()

    normalized = normalize_pdf(pdf_bytes)

    pikepdf = _require_pikepdf()
    with pikepdf.open(io.BytesIO(normalized)) as pdf:
        root_obj_num, root_gen = find_root_obj_num(pdf)
        page = find_first_page(pdf)
        prev_size = int(pdf.trailer["/Size"])
        trailer_extra = extract_trailer_entries(pdf)

        obj_nums = allocate_sig_objects(prev_size)
        sig_dict_raw = build_sig_dict(
            obj_nums.sig,
            reason=opts.reason,
            signing_time=opts.signing_time,
            name=opts.name,
            location=opts.location,
            contact_info=opts.contact_info,
        )
        annot_raw = build_sig_widget(obj_nums, page.obj_num)

        annots_list = " ".join([*page.annots, f"{obj_nums.annot} 0 R"])
        page_override = build_page_override(pdf, page.obj_num, annots_list)
        catalog_override = build_catalog_override(pdf, root_obj_num, obj_nums.annot)

    raw_objects = [
        (_to_bytes(sig_dict_raw), obj_nums.sig),
        (_to_bytes(annot_raw), obj_nums.annot),
        (_to_bytes(page_override), page.obj_num),
        (_to_bytes(catalog_override), root_obj_num),
    ]

    full_pdf = assemble_incremental_update(
        pdf_bytes=normalized,
        raw_objects=raw_objects,
        new_size=obj_nums.new_size,
        prev_xref=find_prev_startxref(normalized),
        root_obj_num=root_obj_num,
        root_gen=root_gen,
        trailer_extra=trailer_extra,
    )

    prepared, layout = patch_byterange(full_pdf, len(normalized))
    _logger.info(
        "Inserted signature placeholder: %d -> %d bytes, ByteRange=%s",
        len(pdf_bytes),
        len(prepared),
        list(layout.byterange),
    )
    return prepared


def find_placeholder(pdf_bytes: bytes) -> PlaceholderLayout:
    """Locate the Contents span of the last signature from its resolved ByteRange.

    Works on both placeholder-bearing and signed documents.

    Raises:
        PDFError: If no resolved ByteRange exists or it does not bracket
            a ``<hex>`` Contents string.
    """
    br_matches = list(re.finditer(BYTERANGE_PATTERN, pdf_bytes))
    if not br_matches:
        raise PDFError("No resolved /ByteRange found -- was the placeholder inserted?")
    br_match = br_matches[-1]
    byterange = byterange_from_match(br_match)
    byterange.validate(len(pdf_bytes))
    check_contents_delimiters(pdf_bytes, byterange)
    return PlaceholderLayout(
        byterange=byterange,
        byterange_offset=br_match.start(),
        hex_start=byterange.hex_start,
        hex_len=byterange.hex_end - byterange.hex_start,
    )


def byterange_data(pdf_bytes: bytes) -> bytes:
    """Return exactly the bytes covered by the document's ByteRange."""
    layout = find_placeholder(pdf_bytes)
    return extract_signed_data(pdf_bytes, layout.byterange)


def compute_byterange_hash(pdf_bytes: bytes, algorithm: str = DEFAULT_DIGEST_ALGORITHM) -> bytes:
    """Digest of the ByteRange data (everything except ``<hex>`` of Contents)."""
    return hashlib.new(algorithm, byterange_data(pdf_bytes)).digest()
