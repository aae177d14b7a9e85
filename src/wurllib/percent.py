"""wurllib.percent
Percent-encoding and decoding of byte sequences.
Each encode set is a plain table of byte values that must be escaped in one URL context.
"""

import re

# Each of these sets is from the WHATWG URL Standard, section 1.3, plus the
# extra bytes this library escapes so that decoding and re-encoding a
# component is idempotent.

# C0 control percent-encode set = C0 controls / U+007F DELETE / every non-ASCII byte
C0_CONTROL: frozenset[int] = frozenset(range(0x00, 0x20)) | frozenset(range(0x7F, 0x100))

# fragment percent-encode set = C0 control set / SP / '"' / "<" / ">" / "`"
FRAGMENT: frozenset[int] = C0_CONTROL | frozenset(b' "<>`')

# query percent-encode set = C0 control set / SP / '"' / "#" / "<" / ">"
QUERY: frozenset[int] = C0_CONTROL | frozenset(b' "#<>')

# special-query percent-encode set = query set / "'"
SPECIAL_QUERY: frozenset[int] = QUERY | frozenset(b"'")

# path percent-encode set = query set / "?" / "`" / "{" / "}"
PATH: frozenset[int] = QUERY | frozenset(b"?`{}")

# A single path segment additionally escapes its delimiter and "%".
PATH_SEGMENT: frozenset[int] = PATH | frozenset(b"/%")

# Special schemes also treat "\" as a delimiter.
SPECIAL_PATH_SEGMENT: frozenset[int] = PATH_SEGMENT | frozenset(b"\\")

# userinfo percent-encode set = path set / "/" / ":" / ";" / "=" / "@" / "[" / "\" / "]" / "^" / "|"
USERINFO: frozenset[int] = PATH | frozenset(b"/:;=@[\\]^|%")

# Native file path components: NUL and "%" are always escaped, "|" so a
# component never reads as a Windows drive letter.
FILE_PATH_COMPONENT: frozenset[int] = SPECIAL_PATH_SEGMENT | frozenset(b"\x00%|")

ENCODE_SETS: dict[str, frozenset[int]] = {
    "c0_control": C0_CONTROL,
    "fragment": FRAGMENT,
    "query": QUERY,
    "special_query": SPECIAL_QUERY,
    "path": PATH,
    "path_segment": PATH_SEGMENT,
    "special_path_segment": SPECIAL_PATH_SEGMENT,
    "userinfo": USERINFO,
    "file_path_component": FILE_PATH_COMPONENT,
}

_ESCAPES: tuple[str, ...] = tuple(f"%{byte:02X}" for byte in range(0x100))

# pct-encoded = "%" HEXDIG HEXDIG
_PCT_ENCODED_PAT: re.Pattern[bytes] = re.compile(rb"%([0-9A-Fa-f]{2})")


def percent_encode(data: bytes, encode_set: frozenset[int]) -> str:
    """Returns data with every byte in encode_set replaced by its uppercase %XX escape.
    e.g. percent_encode(b"a b", PATH) == "a%20b"
    """
    return "".join(_ESCAPES[byte] if byte in encode_set else chr(byte) for byte in data)


def utf8_percent_encode(text: str, encode_set: frozenset[int]) -> str:
    return percent_encode(text.encode("utf-8", "surrogatepass"), encode_set)


def percent_decode(data: str | bytes) -> bytes:
    """Replaces each well-formed %XX triplet with the byte it encodes.
    Malformed triplets are kept literally, so this never fails.
    """
    if isinstance(data, str):
        data = data.encode("utf-8", "surrogatepass")
    return _PCT_ENCODED_PAT.sub(lambda m: bytes((int(m[1], 16),)), data)


def reencode(text: str, encode_set: frozenset[int]) -> str:
    """Decodes then re-encodes text, giving the canonical escaping of a component.
    encode_set must contain "%" for the result to be stable under repetition.
    """
    return percent_encode(percent_decode(text), encode_set)
