"""wurllib.host
Host classification: every host is exactly one of Domain, Ipv4 or Ipv6.
"""

import dataclasses
import ipaddress
import logging
import re

from typing import Self

import idna

from .errors import EmptyHostError, InvalidDomainError, InvalidIpv6Error, Ipv4OutOfRangeError
from .percent import C0_CONTROL, percent_decode, utf8_percent_encode

logger = logging.getLogger(__name__)

# forbidden host code point = NUL / TAB / LF / CR / SP / "#" / "/" / ":" / "<" / ">" / "?" / "@" / "[" / "\" / "]" / "^" / "|"
_FORBIDDEN_HOST_PAT: re.Pattern[str] = re.compile(r"[\x00\t\n\r #/:<>?@\[\\\]^|]")

# forbidden domain code point = forbidden host code point / C0 control / "%" / DEL
_FORBIDDEN_DOMAIN_PAT: re.Pattern[str] = re.compile(r"[\x00-\x20#%/:<>?@\[\\\]^|\x7f]")

# IPv4 number = "0x" *HEXDIG / "0" 1*octal-digit / decimal without leading zeros
_IPV4_NUMBER_PAT: re.Pattern[str] = re.compile(
    r"0[xX](?P<hex>[0-9A-Fa-f]*)|0(?P<oct>[0-7]+)|(?P<dec>0|[1-9][0-9]*)"
)

_HEXDIGITS: str = "0123456789abcdefABCDEF"


@dataclasses.dataclass(frozen=True)
class Domain:
    """An ASCII domain, Punycode-encoded where needed. Also carries the opaque hosts of non-special schemes."""

    name: str

    def __str__(self: Self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class Ipv4:
    address: ipaddress.IPv4Address

    def __str__(self: Self) -> str:
        return str(self.address)


@dataclasses.dataclass(frozen=True)
class Ipv6:
    address: ipaddress.IPv6Address

    def __str__(self: Self) -> str:
        return f"[{serialize_ipv6(self.address)}]"


Host = Domain | Ipv4 | Ipv6


def parse_host(text: str, special: bool = True) -> Host:
    """Classifies the host substring of an authority.
    Bracketed hosts are IPv6. For special schemes, the percent-decoded host is
    tried as IPv4 and otherwise goes through IDNA. Other schemes get an opaque host.
    """
    if not text:
        raise EmptyHostError()
    if text.startswith("["):
        if not text.endswith("]"):
            raise InvalidIpv6Error(f"unterminated IPv6 address: {text!r}")
        return Ipv6(parse_ipv6(text[1:-1]))
    if not special:
        return _parse_opaque_host(text)

    try:
        decoded: str = percent_decode(text).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidDomainError(f"host is not valid UTF-8: {text!r}") from exc

    address: ipaddress.IPv4Address | None = parse_ipv4(decoded)
    if address is not None:
        return Ipv4(address)
    return Domain(domain_to_ascii(decoded))


def _parse_opaque_host(text: str) -> Domain:
    m: re.Match[str] | None = _FORBIDDEN_HOST_PAT.search(text)
    if m is not None:
        raise InvalidDomainError(f"forbidden code point {m[0]!r} in host {text!r}")
    return Domain(utf8_percent_encode(text, C0_CONTROL))


def domain_to_ascii(domain: str) -> str:
    """Implementation of the IDNA ToASCII step.
    ASCII domains are only lowercased; others go through UTS 46 processing,
    falling back to the IDNA 2003 codec for code points IDNA 2008 disallows.
    """
    if domain.isascii():
        result: str = domain.lower()
    else:
        try:
            result = idna.encode(domain, uts46=True).decode("ascii")
        except UnicodeError:
            logger.debug("IDNA 2008 rejected %r, trying the IDNA 2003 codec", domain)
            try:
                result = domain.encode("idna").decode("ascii")
            except UnicodeError as exc:
                raise InvalidDomainError(f"invalid international domain: {domain!r}") from exc
        result = result.lower()

    m: re.Match[str] | None = _FORBIDDEN_DOMAIN_PAT.search(result)
    if m is not None:
        raise InvalidDomainError(f"forbidden code point {m[0]!r} in domain {domain!r}")
    return result


def _parse_ipv4_number(part: str) -> int | None:
    m: re.Match[str] | None = _IPV4_NUMBER_PAT.fullmatch(part)
    if m is None:
        return None
    if m["hex"] is not None:
        return int(m["hex"], 16) if m["hex"] else 0
    if m["oct"] is not None:
        return int(m["oct"], 8)
    return int(m["dec"], 10)


def parse_ipv4(text: str) -> ipaddress.IPv4Address | None:
    """Returns the address if text is made of IPv4 numbers, None if it should be treated as a domain.
    e.g. parse_ipv4("0x1232131") == IPv4Address("1.35.33.49")
    Raises Ipv4OutOfRangeError when every part is a number but one of them is too large.
    """
    if not text:
        return None
    parts: list[str] = text.split(".")
    if parts[-1] == "" and len(parts) > 1:
        parts.pop()
    if len(parts) > 4:
        return None

    numbers: list[int] = []
    for part in parts:
        number: int | None = _parse_ipv4_number(part) if part else None
        if number is None:
            return None
        numbers.append(number)

    # The last number fills every byte the other parts left over.
    last: int = numbers.pop()
    if last >= 1 << (8 * (4 - len(numbers))) or any(number > 0xFF for number in numbers):
        raise Ipv4OutOfRangeError(f"IPv4 address out of range: {text!r}")
    for index, number in enumerate(numbers):
        last += number << (8 * (3 - index))
    return ipaddress.IPv4Address(last)


def parse_ipv6(text: str) -> ipaddress.IPv6Address:
    """Implementation of the IPv6 parser from the WHATWG URL Standard, section 3.5"""
    pieces: list[int] = [0] * 8
    piece_index: int = 0
    compress: int | None = None
    i: int = 0
    n: int = len(text)

    def fail(reason: str) -> InvalidIpv6Error:
        return InvalidIpv6Error(f"{reason}: [{text}]")

    if text.startswith(":"):
        if not text.startswith("::"):
            raise fail("unexpected leading colon")
        i = 2
        piece_index = 1
        compress = piece_index

    while i < n:
        if piece_index == 8:
            raise fail("too many pieces")
        if text[i] == ":":
            if compress is not None:
                raise fail("multiple '::'")
            i += 1
            piece_index += 1
            compress = piece_index
            continue

        value: int = 0
        length: int = 0
        while length < 4 and i < n and text[i] in _HEXDIGITS:
            value = value * 0x10 + int(text[i], 16)
            i += 1
            length += 1

        if i < n and text[i] == ".":
            if length == 0:
                raise fail("empty IPv4 part")
            i -= length
            if piece_index > 6:
                raise fail("IPv4 part does not fit")
            _parse_embedded_ipv4(text, i, pieces, piece_index, fail)
            piece_index += 2
            break
        if i < n and text[i] == ":":
            i += 1
            if i == n:
                raise fail("unexpected trailing colon")
        elif i < n:
            raise fail(f"unexpected character {text[i]!r}")
        pieces[piece_index] = value
        piece_index += 1

    if compress is not None:
        swaps: int = piece_index - compress
        piece_index = 7
        while piece_index != 0 and swaps > 0:
            other: int = compress + swaps - 1
            pieces[piece_index], pieces[other] = pieces[other], pieces[piece_index]
            piece_index -= 1
            swaps -= 1
    elif piece_index != 8:
        raise fail("too few pieces")

    return ipaddress.IPv6Address(b"".join(piece.to_bytes(2, "big") for piece in pieces))


def _parse_embedded_ipv4(text: str, i: int, pieces: list[int], piece_index: int, fail) -> None:
    """Parses a dotted-quad tail such as the "1.2.3.4" of "::ffff:1.2.3.4" into two pieces."""
    octets: list[int] = []
    for part in text[i:].split("."):
        if not part or not part.isascii() or not part.isdigit():
            raise fail("invalid IPv4 part")
        if len(part) > 1 and part.startswith("0"):
            raise fail("leading zero in IPv4 part")
        octet: int = int(part, 10)
        if octet > 0xFF:
            raise fail("IPv4 part out of range")
        octets.append(octet)
    if len(octets) != 4:
        raise fail("IPv4 part needs four numbers")
    pieces[piece_index] = octets[0] << 8 | octets[1]
    pieces[piece_index + 1] = octets[2] << 8 | octets[3]


def _longest_zero_run(pieces: list[int]) -> tuple[int, int]:
    """Returns (start, length) of the leftmost longest run of zero pieces, or (-1, 0) if no run is longer than one."""
    best_start: int = -1
    best_length: int = 1
    start: int = -1
    for index, piece in enumerate(pieces + [1]):
        if piece == 0:
            if start == -1:
                start = index
        elif start != -1:
            if index - start > best_length:
                best_start, best_length = start, index - start
            start = -1
    return (best_start, best_length) if best_start != -1 else (-1, 0)


def serialize_ipv6(address: ipaddress.IPv6Address) -> str:
    """Implementation of the IPv6 serializer from the WHATWG URL Standard, section 3.6.
    Unlike ipaddress, never uses the dotted IPv4 notation:
    serialize_ipv6(IPv6Address("::ffff:0:2")) == "::ffff:0:2"
    """
    packed: bytes = address.packed
    pieces: list[int] = [int.from_bytes(packed[i : i + 2], "big") for i in range(0, 16, 2)]
    compress_start, compress_length = _longest_zero_run(pieces)

    result: str = ""
    index: int = 0
    while index < 8:
        if index == compress_start:
            result += "::" if index == 0 else ":"
            index += compress_length
            continue
        result += f"{pieces[index]:x}"
        if index < 7:
            result += ":"
        index += 1
    return result
