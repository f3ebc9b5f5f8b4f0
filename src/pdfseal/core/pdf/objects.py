"""Low-level PDF object construction.

Types, constants, and helpers for building the raw PDF objects of a
signature incremental update: signature dictionary, widget annotation,
and overrides of the page and catalog objects.

PDF structure analysis and incremental update assembly is in incremental.py.
High-level placeholder API is in builder.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, NamedTuple

from ...constants import (
    APP_NAME,
    BYTERANGE_SENTINEL,
    CMS_HEX_SIZE,
    SIG_FILTER,
    SIG_SUBFILTER,
    __version__,
)
from .. import require_pikepdf as _require_pikepdf

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)


class SigObjectNums(NamedTuple):
    """Object numbers allocated for the new signature objects."""

    sig: int
    annot: int
    new_size: int


# ── Constants ────────────────────────────────────────────────────────

BYTERANGE_PLACEHOLDER_STR = (
    f"/ByteRange [0 {BYTERANGE_SENTINEL} {BYTERANGE_SENTINEL} {BYTERANGE_SENTINEL}]"
)
BYTERANGE_PLACEHOLDER = BYTERANGE_PLACEHOLDER_STR.encode("ascii")

CONTENTS_PLACEHOLDER_STR = f"/Contents <{'0' * CMS_HEX_SIZE}>"
CONTENTS_PLACEHOLDER = CONTENTS_PLACEHOLDER_STR.encode("ascii")

# PDF annotation flags for signature widget (/F entry).
# Print flag is 4, Locked flag is 128; combined value is 132.
# See PDF Reference 1.7, Table 165 -- Annotation flags.
_ANNOT_FLAG_PRINT = 4
_ANNOT_FLAG_LOCKED = 128
ANNOT_FLAGS_SIG_WIDGET = _ANNOT_FLAG_PRINT | _ANNOT_FLAG_LOCKED  # 132

# /SigFlags: SignaturesExist (1) | AppendOnly (2)
SIG_FLAGS = 3


# ── PDF string/object helpers ────────────────────────────────────────


def pdf_string(text: str) -> str:
    """Escape text for a PDF literal string.

    Handles backslash, parentheses, control characters, and non-Latin1
    characters (replaced with '?' since PDFDocEncoding has limited
    Unicode support).

    Logs a warning if any characters are replaced, as this indicates
    data loss in the PDF output.
    """
    result: list[str] = []
    replaced_count = 0
    for char in text:
        code = ord(char)
        if char == "\\":
            result.append("\\\\")
        elif char == "(":
            result.append("\\(")
        elif char == ")":
            result.append("\\)")
        elif char == "\n":
            result.append("\\n")
        elif char == "\r":
            result.append("\\r")
        elif char == "\t":
            result.append("\\t")
        elif code < 0x20 or code == 0x7F:
            result.append(f"\\{code:03o}")
        elif code > 0xFF:
            result.append("?")
            replaced_count += 1
        else:
            result.append(char)
    if replaced_count > 0:
        _logger.warning(
            "pdf_string: %d non-Latin1 character(s) replaced with '?' in: %r", replaced_count, text
        )
    return "".join(result)


def pdf_date(moment: datetime) -> str:
    """Format a datetime as a PDF date string in UTC (``D:YYYYMMDDHHmmSS+00'00'``).

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def serialize_pikepdf_obj(obj: None | bool | int | float | pikepdf.Object) -> str:
    """Serialize a pikepdf object to a raw PDF string for embedding.

    Indirect objects are emitted as "N G R"; everything else goes through
    pikepdf's unparse(), which keeps nested references as references.
    """
    if obj is None:
        return "null"
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, float):
        return str(int(obj)) if obj % 1 == 0.0 else f"{obj:.6f}"
    pikepdf = _require_pikepdf()
    if isinstance(obj, pikepdf.Object) and obj.is_indirect:
        return f"{obj.objgen[0]} {obj.objgen[1]} R"
    return obj.unparse(resolved=True).decode("latin-1")


# ── Object builders ──────────────────────────────────────────────────


def build_sig_dict(
    obj_num: int,
    reason: str,
    signing_time: datetime,
    name: str | None = None,
    location: str | None = None,
    contact_info: str | None = None,
) -> str:
    """Build the /Type /Sig dictionary object with ByteRange and Contents placeholders."""
    optional = ""
    if name:
        optional += f"  /Name ({pdf_string(name)})\n"
    if location:
        optional += f"  /Location ({pdf_string(location)})\n"
    if contact_info:
        optional += f"  /ContactInfo ({pdf_string(contact_info)})\n"
    prop_build = (
        f"  /Prop_Build << /App << /Name /{APP_NAME} /REx ({__version__}) >> "
        f"/Filter << /Name /{SIG_FILTER} >> >>\n"
    )
    return (
        f"{obj_num} 0 obj\n"
        f"<<\n"
        f"  /Type /Sig\n"
        f"  /Filter /{SIG_FILTER}\n"
        f"  /SubFilter /{SIG_SUBFILTER}\n"
        f"  {BYTERANGE_PLACEHOLDER_STR}\n"
        f"  {CONTENTS_PLACEHOLDER_STR}\n"
        f"  /M ({pdf_date(signing_time)})\n"
        f"  /Reason ({pdf_string(reason)})\n"
        f"{optional}"
        f"{prop_build}"
        f">>\n"
        f"endobj\n"
    )


def build_sig_widget(obj_nums: SigObjectNums, page_obj_num: int) -> str:
    """Build an invisible signature widget (/Rect [0 0 0 0], no /AP).

    The widget doubles as the signature field: /FT /Sig with /V pointing
    at the signature dictionary.
    """
    return (
        f"{obj_nums.annot} 0 obj\n"
        f"<<\n"
        f"  /Type /Annot\n"
        f"  /Subtype /Widget\n"
        f"  /FT /Sig\n"
        f"  /Rect [0 0 0 0]\n"
        f"  /V {obj_nums.sig} 0 R\n"
        f"  /T (Signature{obj_nums.annot})\n"
        f"  /F {ANNOT_FLAGS_SIG_WIDGET}\n"
        f"  /P {page_obj_num} 0 R\n"
        f"  /Border [0 0 0]\n"
        f">>\n"
        f"endobj\n"
    )


def build_object_override(
    pdf: pikepdf.Pdf,
    obj_num: int,
    skip_keys: tuple[str, ...],
    new_entries: list[str],
) -> str:
    """Build a raw override of a PDF object with new/replaced entries.

    Copies all entries of the target object except ``skip_keys``, appends
    ``new_entries``, and returns the raw PDF object definition.

    Args:
        pdf: Open document the object is read from.
        obj_num: Target object number (generation 0).
        skip_keys: Keys to omit from the original object (e.g. "/Annots").
        new_entries: Raw entries to append (e.g. "  /Annots [5 0 R]").
    """
    obj = pdf.get_object((obj_num, 0))
    # pikepdf dict requires .keys() -- __iter__ yields values, not keys
    entries = [
        f"  {key} {serialize_pikepdf_obj(obj[key])}"
        for key in list(obj.keys())
        if key not in skip_keys
    ]
    entries.extend(new_entries)
    body = "\n".join(entries)
    return f"{obj_num} 0 obj\n<<\n{body}\n>>\nendobj\n"


def build_page_override(pdf: pikepdf.Pdf, page_obj_num: int, annots_list: str) -> str:
    """Build a raw override of the page object with the given /Annots."""
    return build_object_override(
        pdf,
        page_obj_num,
        skip_keys=("/Annots",),
        new_entries=[f"  /Annots [{annots_list}]"],
    )


def build_acroform(pdf: pikepdf.Pdf, annot_obj_num: int) -> str:
    """Build a direct /AcroForm dictionary registering the signature widget.

    Entries of an existing AcroForm are preserved and its /Fields kept
    in order, with the widget appended. /SigFlags is always 3.
    """
    entries: list[str] = []
    fields: list[str] = []
    if "/AcroForm" in pdf.Root:
        acroform = pdf.Root["/AcroForm"]
        for key in list(acroform.keys()):
            if key == "/Fields":
                existing = acroform[key]
                fields.extend(serialize_pikepdf_obj(existing[i]) for i in range(len(existing)))
            elif key != "/SigFlags":
                entries.append(f"{key} {serialize_pikepdf_obj(acroform[key])}")
    fields.append(f"{annot_obj_num} 0 R")
    entries.append(f"/Fields [{' '.join(fields)}]")
    entries.append(f"/SigFlags {SIG_FLAGS}")
    return f"<< {' '.join(entries)} >>"


def build_catalog_override(pdf: pikepdf.Pdf, root_obj_num: int, annot_obj_num: int) -> str:
    """Build a raw override of the catalog that adds or extends /AcroForm."""
    return build_object_override(
        pdf,
        root_obj_num,
        skip_keys=("/AcroForm",),
        new_entries=[f"  /AcroForm {build_acroform(pdf, annot_obj_num)}"],
    )


# ── Object number allocation ────────────────────────────────────────


def allocate_sig_objects(prev_size: int) -> SigObjectNums:
    """Allocate object numbers for the signature dictionary and widget.

    New objects start at the previous trailer's /Size (first free number).
    """
    return SigObjectNums(sig=prev_size, annot=prev_size + 1, new_size=prev_size + 2)
