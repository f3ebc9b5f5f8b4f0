"""ByteRange parsing, formatting, and signed-data / CMS extraction."""

from __future__ import annotations

import re
from typing import NamedTuple

from ...errors import PDFError
from .asn1 import extract_der_from_padded_hex

# Regex pattern to find resolved ByteRange arrays in PDF
BYTERANGE_PATTERN = rb"/ByteRange\s*\[\s*(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s*\]"


class ByteRange(NamedTuple):
    """The four-integer /ByteRange array ``[start0 length0 start1 length1]``."""

    start0: int
    length0: int
    start1: int
    length1: int

    @property
    def hex_start(self) -> int:
        """Offset of the first hex character (just after ``<``)."""
        return self.length0 + 1

    @property
    def hex_end(self) -> int:
        """Offset of the closing ``>`` (exclusive end of the hex span)."""
        return self.start1 - 1

    def validate(self, file_size: int) -> None:
        """Check that the ranges start at 0, do not overlap, and stay inside the file.

        Raises:
            PDFError: If any bound is violated.
        """
        if self.start0 != 0:
            raise PDFError(f"ByteRange offset1 should be 0, got {self.start0}")
        if self.length0 <= 0:
            raise PDFError(f"Invalid ByteRange: len1 must be positive, got {self.length0}")
        if self.start1 <= self.length0 + 1:
            raise PDFError(
                f"ByteRange offset2 ({self.start1}) must leave room for Contents "
                f"after len1 ({self.length0})"
            )
        if self.start1 + self.length1 > file_size:
            raise PDFError(
                f"ByteRange extends beyond EOF: {self.start1}+{self.length1} > {file_size}"
            )

    def to_pdf(self, width: int) -> bytes:
        """Render as a ``/ByteRange [...]`` literal padded with spaces to ``width`` bytes.

        Raises:
            PDFError: If the numbers need more room than ``width``.
        """
        literal = f"/ByteRange [{self.start0} {self.length0} {self.start1} {self.length1}]"
        if len(literal) > width:
            raise PDFError(
                f"ByteRange {literal!r} does not fit in the {width}-byte placeholder"
            )
        return literal.ljust(width).encode("ascii")


def byterange_from_match(br_match: re.Match[bytes]) -> ByteRange:
    """Build a ByteRange from a BYTERANGE_PATTERN match."""
    return ByteRange(*(int(br_match.group(i)) for i in range(1, 5)))


def find_byterange(pdf_bytes: bytes) -> ByteRange:
    """Return the last resolved ByteRange in the document.

    Raises:
        PDFError: If the PDF has no resolved /ByteRange.
    """
    br_matches = list(re.finditer(BYTERANGE_PATTERN, pdf_bytes))
    if not br_matches:
        raise PDFError("No /ByteRange found in PDF -- not a signed PDF?")
    return byterange_from_match(br_matches[-1])


def check_contents_delimiters(pdf_bytes: bytes, byterange: ByteRange) -> None:
    """Verify that the gap between the two ranges is exactly ``<hex>``.

    Raises:
        PDFError: If the angle brackets are not where the ByteRange says.
    """
    lt = byterange.length0
    gt = byterange.hex_end
    if pdf_bytes[lt : lt + 1] != b"<":
        raise PDFError(f"Expected '<' at offset {lt}, got {pdf_bytes[lt : lt + 1]!r}")
    if pdf_bytes[gt : gt + 1] != b">":
        raise PDFError(f"Expected '>' at offset {gt}, got {pdf_bytes[gt : gt + 1]!r}")


def extract_signed_data(pdf_bytes: bytes, byterange: ByteRange) -> bytes:
    """Concatenate the two ByteRange chunks -- the exact bytes a signature covers.

    Raises:
        PDFError: If the ByteRange is invalid for this buffer.
    """
    byterange.validate(len(pdf_bytes))
    check_contents_delimiters(pdf_bytes, byterange)
    chunk1 = pdf_bytes[byterange.start0 : byterange.start0 + byterange.length0]
    chunk2 = pdf_bytes[byterange.start1 : byterange.start1 + byterange.length1]
    return chunk1 + chunk2


def extract_cms(pdf_bytes: bytes, byterange: ByteRange) -> bytes:
    """Extract the DER CMS blob from the Contents hex between the two ranges.

    Raises:
        PDFError: If the Contents span is malformed or holds no valid DER.
    """
    byterange.validate(len(pdf_bytes))
    check_contents_delimiters(pdf_bytes, byterange)
    try:
        hex_str = pdf_bytes[byterange.hex_start : byterange.hex_end].decode("ascii").strip()
        # Length comes from the ASN.1 header; trailing zero padding is not
        # stripped blindly since a DER blob may itself end in 0x00.
        return extract_der_from_padded_hex(hex_str)
    except ValueError as e:
        raise PDFError(f"Invalid hex in CMS blob: {e}") from e


def extract_signature_data(pdf_bytes: bytes) -> tuple[bytes, bytes]:
    """
    Extract ByteRange data and CMS blob from the last signature in a signed PDF.

    Returns:
        (signed_data, cms_der) -- the data that was signed and the CMS signature.

    Raises:
        PDFError: If the PDF has no valid embedded signature.
    """
    byterange = find_byterange(pdf_bytes)
    return extract_signed_data(pdf_bytes, byterange), extract_cms(pdf_bytes, byterange)
