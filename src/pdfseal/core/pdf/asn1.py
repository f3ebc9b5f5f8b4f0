"""ASN.1/DER helpers for CMS blobs stored in zero-padded hex."""

from __future__ import annotations

from asn1crypto import parser

# ASN.1 SEQUENCE tag -- first byte of any valid CMS/PKCS#7 blob
ASN1_SEQUENCE_TAG = 0x30

# Minimum plausible CMS blob size in bytes (header + basic content)
MIN_CMS_SIZE = 100

_INDEFINITE_LENGTH = 0x80


def extract_der_from_padded_hex(hex_str: str) -> bytes:
    """Decode a zero-padded hex Contents value and return the exact DER blob.

    The blob's extent is read from its ASN.1 header, so a DER value that
    itself ends in 0x00 is not truncated.

    Raises:
        ValueError: If the hex is invalid, the value is not a definite-length
            SEQUENCE, or the header claims more bytes than are present.
    """
    data = bytes.fromhex(hex_str)
    if len(data) < 2:
        raise ValueError("Hex string too short for ASN.1 TLV header")
    if data[0] != ASN1_SEQUENCE_TAG:
        raise ValueError(f"Expected ASN.1 SEQUENCE (0x30), got 0x{data[0]:02x}")
    if data[1] == _INDEFINITE_LENGTH:
        raise ValueError("Indefinite length encoding is not valid in DER")

    # parser.parse raises ValueError when the header overruns the buffer.
    _, _, _, header, contents, _ = parser.parse(data)
    return data[: len(header) + len(contents)]
