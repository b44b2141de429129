"""Certificate subject-name hashing.

Computes the identifier TLS trust stores use to locate CA certificates
in a hashed directory (the value printed by ``openssl x509 -hash``):
SHA-1 over the canonical DER encoding of the subject name, first four
bytes read little-endian, as eight lowercase hex digits.

Canonical encoding rules:
- every string-typed attribute value is re-encoded as UTF8String,
  trimmed, with inner whitespace runs collapsed to one space, and
  ASCII letters lowercased;
- each relative distinguished name is DER-encoded as a SET OF;
- the sets are concatenated without the outer SEQUENCE header.
"""

import hashlib
import re
from pathlib import Path

from cryptography import x509
# _ASN1Type and NameAttribute._type are private; checked against cryptography 42 to 44
from cryptography.x509.name import _ASN1Type

# String types OpenSSL canonicalizes to UTF8String
_CANON_TYPES = frozenset(
    {
        _ASN1Type.UTF8String,
        _ASN1Type.BMPString,
        _ASN1Type.UniversalString,
        _ASN1Type.PrintableString,
        _ASN1Type.T61String,
        _ASN1Type.IA5String,
        _ASN1Type.VisibleString,
    }
)

_WHITESPACE = " \t\n\v\f\r"
_WHITESPACE_RUN = re.compile(r"[ \t\n\v\f\r]+")

_TAG_BIT_STRING = 0x03
_TAG_OID = 0x06
_TAG_UTF8 = 0x0C
_TAG_SEQUENCE = 0x30
_TAG_SET = 0x31


def _der_length(length: int) -> bytes:
    if length < 0x80:
        return bytes([length])
    body = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(body)]) + body


def _der(tag: int, body: bytes) -> bytes:
    return bytes([tag]) + _der_length(len(body)) + body


def _der_oid(dotted: str) -> bytes:
    arcs = [int(arc) for arc in dotted.split(".")]
    encoded = bytearray()
    for arc in [arcs[0] * 40 + arcs[1], *arcs[2:]]:
        chunk = [arc & 0x7F]
        arc >>= 7
        while arc:
            chunk.append(0x80 | (arc & 0x7F))
            arc >>= 7
        encoded.extend(reversed(chunk))
    return _der(_TAG_OID, bytes(encoded))


def canonical_value(value: str) -> str:
    """Apply the trust-store canonical form to an attribute value."""
    collapsed = _WHITESPACE_RUN.sub(" ", value.strip(_WHITESPACE))
    return "".join(char.lower() if char.isascii() else char for char in collapsed)


def _encode_attribute(attribute: x509.NameAttribute) -> bytes:
    value = attribute.value
    if isinstance(value, bytes):
        encoded_value = _der(_TAG_BIT_STRING, b"\x00" + value)
    elif attribute._type in _CANON_TYPES:
        encoded_value = _der(_TAG_UTF8, canonical_value(value).encode("utf-8"))
    else:
        encoded_value = _der(attribute._type.value, value.encode("utf-8"))
    return _der(_TAG_SEQUENCE, _der_oid(attribute.oid.dotted_string) + encoded_value)


def canonical_name(name: x509.Name) -> bytes:
    """Canonical DER encoding of a distinguished name, without outer header."""
    encoded = bytearray()
    for rdn in name.rdns:
        members = sorted(_encode_attribute(attribute) for attribute in rdn)
        encoded.extend(_der(_TAG_SET, b"".join(members)))
    return bytes(encoded)


def name_hash(name: x509.Name) -> str:
    """Trust-store hash of a distinguished name."""
    digest = hashlib.sha1(canonical_name(name), usedforsecurity=False).digest()
    return f"{int.from_bytes(digest[:4], 'little'):08x}"


def load_certificate(data: bytes) -> x509.Certificate:
    """Parse a PEM or DER certificate.

    Raises:
        ValueError: If the data is not a certificate.
    """
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def subject_hash(path: Path) -> str:
    """Trust-store hash of the subject of the certificate stored at path.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a certificate.
    """
    certificate = load_certificate(Path(path).read_bytes())
    return name_hash(certificate.subject)
