"""wurllib.parser
A WHATWG-style URL parser.
The input is consumed region by region: scheme, authority, host, port, path, query, fragment.
Each region is handed to the next along with what is left of the input.
"""

import dataclasses
import logging
import re

from typing import Callable, Self

from .errors import (
    EmptyHostError,
    InvalidDomainError,
    InvalidIpv6Error,
    InvalidPortError,
    RelativeUrlWithoutBaseError,
    SchemeMissingError,
)
from .host import Domain, Host, parse_host
from .percent import (
    C0_CONTROL,
    FRAGMENT,
    PATH_SEGMENT,
    QUERY,
    SPECIAL_PATH_SEGMENT,
    SPECIAL_QUERY,
    USERINFO,
    percent_decode,
    percent_encode,
    reencode,
    utf8_percent_encode,
)
from .url import DEFAULT_PORTS, SPECIAL_SCHEMES, URL

logger = logging.getLogger(__name__)

# scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME: str = r"[A-Za-z][A-Za-z0-9+\-.]*"
_SCHEME_PAT: re.Pattern[str] = re.compile(_SCHEME)
_SCHEME_PREFIX_PAT: re.Pattern[str] = re.compile(rf"(?P<scheme>{_SCHEME}):")

# port = 1*DIGIT
_PORT_PAT: re.Pattern[str] = re.compile(r"[0-9]+")

# Windows drive letter = ALPHA ( ":" / "|" )
_WINDOWS_DRIVE_LETTER_PAT: re.Pattern[str] = re.compile(r"[A-Za-z][:|]")

# C0 control or space, stripped from both ends of the input
_C0_OR_SPACE: str = "".join(chr(i) for i in range(0x21))

_MAX_PORT: int = 0xFFFF


@dataclasses.dataclass
class ParseOptions:
    """Parser configuration.
    violation_fn is called with a description of every non-fatal syntax violation;
    without one, violations go to the debug log.
    """

    base_url: URL | None = None
    violation_fn: Callable[[str], None] | None = None

    def parse(self: Self, data: str) -> URL:
        return _Parser(self).parse(data)


def parse_url(data: str, base: URL | None = None) -> URL:
    """Parses data into a URL, resolving it against base when it is a relative reference.
    e.g. parse_url("../c", parse_url("http://example.com/a/b/")) == parse_url("http://example.com/a/c")
    """
    return ParseOptions(base_url=base).parse(data)


def parse_scheme(scheme: str) -> str:
    if not scheme:
        raise SchemeMissingError()
    if _SCHEME_PAT.fullmatch(scheme) is None:
        raise SchemeMissingError(f"invalid scheme: {scheme!r}")
    return scheme.lower()


def parse_userinfo_part(text: str) -> str:
    return reencode(text, USERINFO)


def parse_port(text: str | None, scheme: str) -> int | None:
    """Returns the port as an int, or None when it is empty or the scheme's default."""
    if not text:
        return None
    if _PORT_PAT.fullmatch(text) is None:
        raise InvalidPortError(f"invalid port: {text!r}")
    port: int = int(text, 10)
    if port > _MAX_PORT:
        raise InvalidPortError(f"port out of range: {port}")
    if port == DEFAULT_PORTS.get(scheme):
        logger.debug("dropping default port %d of %s", port, scheme)
        return None
    return port


def parse_query(text: str, special: bool) -> str:
    return utf8_percent_encode(text, SPECIAL_QUERY if special else QUERY)


def parse_fragment(text: str) -> str:
    return utf8_percent_encode(text, FRAGMENT)


def _is_normalized_drive_letter(segment: str) -> bool:
    return len(segment) == 2 and segment[0].isascii() and segment[0].isalpha() and segment[1] == ":"


def parse_path(text: str, segments: list[str], scheme: str) -> tuple[str, ...]:
    """Appends the segments of text to segments, removing dot segments as it goes.
    A ".." never pops below the root, nor past the drive letter of a file URL.
    """
    special: bool = scheme in SPECIAL_SCHEMES
    if not text and not special:
        return tuple(segments)
    if text[:1] == "/" or (special and text[:1] == "\\"):
        text = text[1:]

    encode_set: frozenset[int] = SPECIAL_PATH_SEGMENT if special else PATH_SEGMENT
    parts: list[str] = re.split(r"[/\\]", text) if special else text.split("/")
    for index, part in enumerate(parts):
        last: bool = index == len(parts) - 1
        raw: bytes = percent_decode(part)
        if raw == b"..":
            at_drive: bool = scheme == "file" and len(segments) == 1 and _is_normalized_drive_letter(segments[0])
            if segments and not at_drive:
                segments.pop()
            if last:
                segments.append("")
        elif raw == b".":
            if last:
                segments.append("")
        else:
            segment: str = percent_encode(raw, encode_set)
            if scheme == "file" and not segments and _WINDOWS_DRIVE_LETTER_PAT.fullmatch(segment):
                segment = f"{segment[0]}:"
            segments.append(segment)
    return tuple(segments)


def _split_tail(text: str) -> tuple[str, str | None, str | None]:
    """Splits text into (path, query, fragment). Absent components are None."""
    rest, hash_sign, fragment = text.partition("#")
    path, question_mark, query = rest.partition("?")
    return path, query if question_mark else None, fragment if hash_sign else None


def _base_segments(base: URL) -> tuple[str, ...]:
    return base.raw_path if isinstance(base.raw_path, tuple) else ()


def _starts_with_two_slashes(text: str, special: bool) -> bool:
    if special:
        return len(text) >= 2 and text[0] in "/\\" and text[1] in "/\\"
    return text.startswith("//")


class _Parser:
    def __init__(self: Self, options: ParseOptions) -> None:
        self.options: ParseOptions = options

    def violation(self: Self, description: str) -> None:
        if self.options.violation_fn is not None:
            self.options.violation_fn(description)
        else:
            logger.debug("URL syntax violation: %s", description)

    def parse(self: Self, data: str) -> URL:
        text: str = data.strip(_C0_OR_SPACE)
        if text != data:
            self.violation("leading or trailing C0 control or space")
        cleaned: str = re.sub(r"[\t\n\r]", "", text)
        if cleaned != text:
            self.violation("tab or newline")
        text = cleaned

        base: URL | None = self.options.base_url
        m: re.Match[str] | None = _SCHEME_PREFIX_PAT.match(text)
        if m is None:
            return self._parse_without_scheme(text, base)

        scheme: str = m["scheme"].lower()
        rest: str = text[m.end() :]
        if scheme == "file":
            return self._parse_file(rest, base if base is not None and base.raw_scheme == "file" else None)
        if scheme in SPECIAL_SCHEMES:
            if base is not None and base.raw_scheme == scheme and not _starts_with_two_slashes(rest, True):
                self.violation("expected // after the scheme")
                return self._parse_relative(rest, base)
            if not _starts_with_two_slashes(rest, True):
                self.violation("expected // after the scheme")
            return self._parse_authority(scheme, rest.lstrip("/\\"))
        if rest.startswith("//"):
            return self._parse_authority(scheme, rest[2:])
        if rest.startswith("/"):
            path, query, fragment = _split_tail(rest)
            return self._finish(scheme, "", None, None, None, parse_path(path, [], scheme), query, fragment, False)
        return self._parse_opaque(scheme, rest)

    def _parse_without_scheme(self: Self, text: str, base: URL | None) -> URL:
        if base is None:
            if not text or text.startswith(":"):
                raise SchemeMissingError()
            raise RelativeUrlWithoutBaseError()
        if base.cannot_be_a_base:
            if text.startswith("#"):
                return dataclasses.replace(base, raw_fragment=parse_fragment(text[1:]))
            raise RelativeUrlWithoutBaseError(f"{base} cannot be a base")
        if base.raw_scheme == "file":
            return self._parse_file(text, base)
        return self._parse_relative(text, base)

    def _parse_relative(self: Self, text: str, base: URL) -> URL:
        """Resolves a scheme-less reference against a hierarchical base."""
        scheme: str = base.raw_scheme
        special: bool = base.is_special
        if _starts_with_two_slashes(text, special):
            return self._parse_authority(scheme, text.lstrip("/\\") if special else text[2:])

        path, query, fragment = _split_tail(text)
        segments: tuple[str, ...]
        if path[:1] == "/" or (special and path[:1] == "\\"):
            segments = parse_path(path, [], scheme)
        elif path:
            segments = parse_path(path, list(_base_segments(base)[:-1]), scheme)
        else:
            segments = _base_segments(base)
            if query is None:
                query = base.raw_query
        return self._finish(
            scheme,
            base.raw_username,
            base.raw_password,
            base.raw_host,
            base.raw_port,
            segments,
            query,
            fragment,
            base.has_authority,
        )

    def _parse_authority(self: Self, scheme: str, text: str) -> URL:
        special: bool = scheme in SPECIAL_SCHEMES
        end: int = len(text)
        for delimiter in "/\\?#" if special else "/?#":
            index: int = text.find(delimiter)
            if index != -1:
                end = min(end, index)
        authority: str = text[:end]
        remainder: str = text[end:]
        if special and "\\" in remainder.partition("?")[0].partition("#")[0]:
            self.violation("backslash used as a path separator")

        userinfo, at_sign, host_and_port = authority.rpartition("@")
        username: str = ""
        password: str | None = None
        if at_sign:
            if "@" in userinfo:
                self.violation("unescaped @ in userinfo")
            user, colon, secret = userinfo.partition(":")
            username = parse_userinfo_part(user)
            password = parse_userinfo_part(secret) if colon else None

        host_text, port_text = self._split_host_and_port(host_and_port)
        host: Host | None = None
        if host_text:
            host = parse_host(host_text, special)
        elif special or at_sign or port_text:
            raise EmptyHostError()
        port: int | None = parse_port(port_text, scheme)

        path, query, fragment = _split_tail(remainder)
        return self._finish(scheme, username, password, host, port, parse_path(path, [], scheme), query, fragment, True)

    @staticmethod
    def _split_host_and_port(text: str) -> tuple[str, str | None]:
        if text.startswith("["):
            close: int = text.find("]")
            if close == -1:
                raise InvalidIpv6Error(f"unterminated IPv6 address: {text!r}")
            host, after = text[: close + 1], text[close + 1 :]
            if not after:
                return host, None
            if not after.startswith(":"):
                raise InvalidIpv6Error(f"unexpected text after IPv6 address: {text!r}")
            return host, after[1:]
        host, colon, port = text.partition(":")
        return host, port if colon else None

    def _parse_file(self: Self, text: str, base: URL | None) -> URL:
        host: Host | None = None
        segments: tuple[str, ...]

        if _starts_with_two_slashes(text, True):
            text = text[2:]
            end: int = len(text)
            for delimiter in "/\\?#":
                index: int = text.find(delimiter)
                if index != -1:
                    end = min(end, index)
            host_text: str = text[:end]
            if _WINDOWS_DRIVE_LETTER_PAT.fullmatch(host_text):
                self.violation("Windows drive letter in file URL host")
            else:
                text = text[end:]
                host = self._parse_file_host(host_text)
            path, query, fragment = _split_tail(text)
            segments = parse_path(path, [], "file")
        elif text[:1] in ("/", "\\"):
            path, query, fragment = _split_tail(text)
            prefix: list[str] = []
            if base is not None:
                host = base.raw_host
                first_part: str = re.split(r"[/\\?#]", text[1:], maxsplit=1)[0]
                base_path: tuple[str, ...] = _base_segments(base)
                if (
                    base_path
                    and _is_normalized_drive_letter(base_path[0])
                    and not _WINDOWS_DRIVE_LETTER_PAT.fullmatch(first_part)
                ):
                    prefix = [base_path[0]]
            segments = parse_path(path, prefix, "file")
        elif base is not None:
            host = base.raw_host
            path, query, fragment = _split_tail(text)
            if not path:
                segments = _base_segments(base)
                if query is None:
                    query = base.raw_query
            elif _WINDOWS_DRIVE_LETTER_PAT.match(path):
                segments = parse_path(path, [], "file")
            else:
                segments = parse_path(path, list(_base_segments(base)[:-1]), "file")
        else:
            # A relative path with nothing to resolve against starts from the root.
            path, query, fragment = _split_tail(text)
            segments = parse_path(path, [], "file")
        return self._finish("file", "", None, host, None, segments, query, fragment, True)

    @staticmethod
    def _parse_file_host(text: str) -> Host | None:
        if not text:
            return None
        if "@" in text:
            raise InvalidDomainError(f"file URLs cannot have credentials: {text!r}")
        if not text.startswith("[") and ":" in text:
            raise InvalidPortError(f"file URLs cannot have a port: {text!r}")
        host: Host = parse_host(text, True)
        if host == Domain("localhost"):
            return None
        return host

    def _parse_opaque(self: Self, scheme: str, text: str) -> URL:
        path, query, fragment = _split_tail(text)
        return self._finish(scheme, "", None, None, None, utf8_percent_encode(path, C0_CONTROL), query, fragment, False)

    @staticmethod
    def _finish(
        scheme: str,
        username: str,
        password: str | None,
        host: Host | None,
        port: int | None,
        path: tuple[str, ...] | str,
        query: str | None,
        fragment: str | None,
        has_authority: bool,
    ) -> URL:
        special: bool = scheme in SPECIAL_SCHEMES
        return URL(
            raw_scheme=scheme,
            raw_username=username,
            raw_password=password,
            raw_host=host,
            raw_port=port,
            raw_path=path,
            raw_query=parse_query(query, special) if query is not None else None,
            raw_fragment=parse_fragment(fragment) if fragment is not None else None,
            has_authority=has_authority,
        )
