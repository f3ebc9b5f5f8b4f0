"""PDF structure analysis and incremental update assembly.

Functions for normalizing the input document, reading its structure
(catalog, first page, trailer), and building the incremental update
(xref table, trailer, ByteRange patching).

Object-level construction is in objects.py.
High-level placeholder API is in builder.py.
"""

from __future__ import annotations

import io
import logging
import re
from typing import TYPE_CHECKING, NamedTuple

from ...constants import CMS_HEX_SIZE
from ...errors import PDFError
from .. import require_pikepdf as _require_pikepdf
from .byterange import ByteRange
from .objects import BYTERANGE_PLACEHOLDER, CONTENTS_PLACEHOLDER, serialize_pikepdf_obj

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)

_MAX_FIELD_DEPTH = 32


class PageInfo(NamedTuple):
    """Object number and existing annotations of the anchor page."""

    obj_num: int
    annots: list[str]


class PlaceholderLayout(NamedTuple):
    """Where the placeholder pieces sit in a prepared buffer."""

    byterange: ByteRange
    byterange_offset: int
    hex_start: int
    hex_len: int


# ── Normalization ────────────────────────────────────────────────────


def normalize_pdf(pdf_bytes: bytes) -> bytes:
    """Re-serialize a PDF with a classic xref table and no object streams.

    Every object of the result is a plain ``N 0 obj`` at a known offset,
    so the incremental update can reference and override objects by
    number with generation 0.

    Raises:
        PDFError: If the document is not a PDF, cannot be parsed, is
            encrypted, has no pages, or already carries a signature.
    """
    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            if pdf.is_encrypted:
                raise PDFError(
                    "Encrypted PDFs are not supported -- the signed output "
                    "would lose its encryption and permissions."
                )
            if len(pdf.pages) == 0:
                raise PDFError("PDF has no pages -- cannot anchor a signature widget.")
            if has_signature_field(pdf):
                raise PDFError("PDF already contains a signature field with a value.")
            buf = io.BytesIO()
            pdf.save(buf, object_stream_mode=pikepdf.ObjectStreamMode.disable)
    except pikepdf.PdfError as e:
        raise PDFError(f"Cannot parse PDF: {e}") from e
    normalized = buf.getvalue()
    _logger.debug("Normalized PDF: %d -> %d bytes", len(pdf_bytes), len(normalized))
    return normalized


def _is_filled_sig_field(obj: pikepdf.Object) -> bool:
    return obj.get("/FT") == "/Sig" and "/V" in obj


def has_signature_field(pdf: pikepdf.Pdf) -> bool:
    """Whether any form field or page widget is a signature field with a /V value."""
    pikepdf = _require_pikepdf()

    if "/AcroForm" in pdf.Root and "/Fields" in pdf.Root["/AcroForm"]:
        stack = [(field, 0) for field in pdf.Root["/AcroForm"]["/Fields"]]
        seen: set[tuple[int, int]] = set()
        while stack:
            field, depth = stack.pop()
            if not isinstance(field, pikepdf.Dictionary) or depth > _MAX_FIELD_DEPTH:
                continue
            if field.is_indirect:
                if field.objgen in seen:
                    continue
                seen.add(field.objgen)
            if _is_filled_sig_field(field):
                return True
            if "/Kids" in field:
                stack.extend((kid, depth + 1) for kid in field["/Kids"])

    for page in pdf.pages:
        annots = page.obj.get("/Annots")
        if annots is None:
            continue
        for annot in annots:
            if isinstance(annot, pikepdf.Dictionary) and _is_filled_sig_field(annot):
                return True
    return False


# ── PDF structure analysis ───────────────────────────────────────────


def find_root_obj_num(pdf: pikepdf.Pdf) -> tuple[int, int]:
    """Return the catalog's (object number, generation)."""
    root = pdf.trailer["/Root"]
    if not root.is_indirect:
        raise PDFError("Catalog /Root is not an indirect object.")
    return root.objgen


def find_first_page(pdf: pikepdf.Pdf) -> PageInfo:
    """Return the first page's object number and its /Annots entries as raw PDF."""
    if len(pdf.pages) == 0:
        raise PDFError("PDF has no pages -- cannot anchor a signature widget.")
    page_obj = pdf.pages[0].obj
    existing_annots: list[str] = []
    if "/Annots" in page_obj:
        annots = page_obj["/Annots"]
        existing_annots.extend(serialize_pikepdf_obj(annots[i]) for i in range(len(annots)))
    return PageInfo(page_obj.objgen[0], existing_annots)


def find_prev_startxref(pdf_bytes: bytes) -> int:
    """Return the offset from the last ``startxref`` in the file.

    PDFs with incremental updates have multiple startxref/%%EOF pairs;
    the last one is authoritative.
    """
    matches = list(re.finditer(rb"startxref\s+(\d+)\s+%%EOF", pdf_bytes))
    if not matches:
        raise PDFError("Cannot find startxref in PDF.")
    return int(matches[-1].group(1))


def extract_trailer_entries(pdf: pikepdf.Pdf) -> list[str]:
    """Raw /Info and /ID trailer entries to carry into the update trailer."""
    pikepdf = _require_pikepdf()
    trailer_extra: list[str] = []
    trailer = pdf.trailer
    if "/Info" in trailer:
        info_obj = trailer["/Info"]
        if isinstance(info_obj, pikepdf.Object) and info_obj.is_indirect:
            trailer_extra.append(f"/Info {info_obj.objgen[0]} {info_obj.objgen[1]} R")
    if "/ID" in trailer:
        trailer_extra.append(f"/ID {serialize_pikepdf_obj(trailer['/ID'])}")
    return trailer_extra


# ── Incremental update assembly ─────────────────────────────────────


def assemble_incremental_update(
    pdf_bytes: bytes,
    raw_objects: list[tuple[bytes, int]],
    new_size: int,
    prev_xref: int,
    root_obj_num: int,
    root_gen: int,
    trailer_extra: list[str],
) -> bytes:
    """Append new objects, an xref section, and a trailer to the original bytes."""
    base = pdf_bytes
    if not base.endswith(b"\n"):
        base = base + b"\n"

    update_start = len(base)

    objects_raw: list[bytes] = []
    xref_entries: dict[int, int] = {}

    running_offset = update_start
    for raw_bytes, obj_num in raw_objects:
        xref_entries[obj_num] = running_offset
        objects_raw.append(raw_bytes)
        running_offset += len(raw_bytes)

    all_objects = b"".join(objects_raw)

    xref_data = build_xref_and_trailer(
        xref_entries=xref_entries,
        new_size=new_size,
        prev_xref=prev_xref,
        root_obj_num=root_obj_num,
        root_gen=root_gen,
        trailer_extra=trailer_extra,
        xref_offset=update_start + len(all_objects),
    )

    return base + all_objects + xref_data


def build_xref_and_trailer(
    xref_entries: dict[int, int],
    new_size: int,
    prev_xref: int,
    root_obj_num: int,
    root_gen: int,
    trailer_extra: list[str],
    xref_offset: int,
) -> bytes:
    """Build an xref table and trailer for an incremental update.

    Args:
        xref_entries: Mapping of object number to byte offset.
        new_size: Total object count (/Size value).
        prev_xref: Previous xref offset (/Prev value).
        root_obj_num: Catalog object number for /Root reference.
        root_gen: Catalog generation number.
        trailer_extra: Extra trailer entries to carry forward (/Info, /ID).
        xref_offset: Byte offset where this xref table starts.

    Returns:
        Raw bytes of the xref table, trailer, and %%EOF.
    """
    if not xref_entries:
        raise PDFError("Cannot build xref table: no objects to reference.")

    xref_lines = ["xref"]

    # Group consecutive object numbers into subsections
    sorted_nums = sorted(xref_entries.keys())
    groups: list[list[int]] = []
    current_group = [sorted_nums[0]]
    for n in sorted_nums[1:]:
        if n == current_group[-1] + 1:
            current_group.append(n)
        else:
            groups.append(current_group)
            current_group = [n]
    groups.append(current_group)

    for group in groups:
        xref_lines.append(f"{group[0]} {len(group)}")
        # Each entry is exactly 20 bytes: 18 chars + \r + \n (from the join).
        xref_lines.extend(f"{xref_entries[obj_num]:010d} 00000 n\r" for obj_num in group)

    xref_lines.append("trailer")
    xref_lines.append("<<")
    xref_lines.append(f"  /Size {new_size}")
    xref_lines.append(f"  /Prev {prev_xref}")
    xref_lines.append(f"  /Root {root_obj_num} {root_gen} R")
    xref_lines.extend(f"  {extra}" for extra in trailer_extra)
    xref_lines.append(">>")
    xref_lines.append("startxref")
    xref_lines.append(str(xref_offset))
    xref_lines.append("%%EOF")
    xref_lines.append("")  # trailing newline

    return "\n".join(xref_lines).encode("latin-1")


# ── Placeholder location and ByteRange patching ─────────────────────


def locate_placeholder(full_pdf: bytes, update_start: int = 0) -> tuple[int, int]:
    """Find the unresolved ByteRange literal and the Contents ``<`` offset.

    The ByteRange sentinel must occur exactly once in the whole buffer,
    and the zero-filled Contents exactly once after it.

    Returns:
        (byterange_offset, contents_lt_offset)

    Raises:
        PDFError: If either marker is missing or ambiguous.
    """
    br_count = full_pdf.count(BYTERANGE_PLACEHOLDER)
    if br_count != 1:
        raise PDFError(
            f"Expected exactly one ByteRange placeholder in serialized PDF, found {br_count}."
        )
    br_pos = full_pdf.find(BYTERANGE_PLACEHOLDER)
    if br_pos < update_start:
        raise PDFError("ByteRange placeholder lies outside the incremental update.")

    contents_pos = full_pdf.find(CONTENTS_PLACEHOLDER, br_pos)
    if contents_pos == -1:
        raise PDFError("Cannot find Contents placeholder in prepared PDF.")
    if full_pdf.find(CONTENTS_PLACEHOLDER, contents_pos + 1) != -1:
        raise PDFError("Contents placeholder appears more than once in prepared PDF.")

    lt = contents_pos + len(b"/Contents ")
    return br_pos, lt


def patch_byterange(full_pdf: bytes, update_start: int) -> tuple[bytes, PlaceholderLayout]:
    """Replace the ByteRange sentinel with real offsets, keeping every byte in place.

    The two ranges cover everything except ``<hex>`` of the Contents entry.

    Returns:
        (patched_pdf, layout)
    """
    br_pos, lt = locate_placeholder(full_pdf, update_start)
    gt = lt + 1 + CMS_HEX_SIZE
    if full_pdf[gt : gt + 1] != b">":
        raise PDFError(f"Expected '>' closing the Contents placeholder at offset {gt}.")

    after_start = gt + 1
    byterange = ByteRange(0, lt, after_start, len(full_pdf) - after_start)
    literal = byterange.to_pdf(len(BYTERANGE_PLACEHOLDER))

    patched = full_pdf[:br_pos] + literal + full_pdf[br_pos + len(BYTERANGE_PLACEHOLDER) :]
    if len(patched) != len(full_pdf):
        raise PDFError(f"ByteRange patch changed PDF size: {len(full_pdf)} -> {len(patched)}")

    _logger.debug("Patched ByteRange: %s", list(byterange))
    return patched, PlaceholderLayout(byterange, br_pos, lt + 1, CMS_HEX_SIZE)
