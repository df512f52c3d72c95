from __future__ import annotations

import codecs

# Longest marks first: a UTF-32 LE mark starts with the UTF-16 LE one.
_BYTE_ORDER_MARKS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def detect_encoding(data: bytes, declared_encoding: str) -> str:
    """Return the encoding implied by a byte-order mark, else the declared one."""
    for bom, name in _BYTE_ORDER_MARKS:
        if data.startswith(bom):
            return name
    return declared_encoding


def decode_source_bytes(data: bytes, declared_encoding: str) -> tuple[str, str]:
    encoding = detect_encoding(data, declared_encoding)
    return data.decode(encoding), encoding
