"""wurllib.url
The URL value type: canonical serialization, equality and component access.
"""

import dataclasses
import functools
import logging
import os
import pathlib

from typing import NamedTuple, Self
from urllib.parse import parse_qsl

from .errors import CannotSetComponentError, EmptyHostError
from .host import Domain, Host

logger = logging.getLogger(__name__)

# https://url.spec.whatwg.org/#special-scheme
DEFAULT_PORTS: dict[str, int | None] = {
    "ftp": 21,
    "file": None,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}

SPECIAL_SCHEMES: frozenset[str] = frozenset(DEFAULT_PORTS)


class Origin(NamedTuple):
    scheme: str
    host: Host
    port: int


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class URL:
    """A parsed, canonical URL. You should not instantiate this directly.
    Instead use parse_url, URL.parse or URL.from_file_path.

    raw_path is a tuple of percent-encoded segments for hierarchical URLs,
    or a single opaque string for cannot-be-a-base URLs such as "mailto:".
    raw_port is never the scheme's default port.
    """

    raw_scheme: str
    raw_username: str
    raw_password: str | None
    raw_host: Host | None
    raw_port: int | None
    raw_path: tuple[str, ...] | str
    raw_query: str | None
    raw_fragment: str | None
    has_authority: bool = True

    @classmethod
    def parse(cls, data: str, base: "URL | None" = None) -> "URL":
        from .parser import parse_url

        return parse_url(data, base)

    @classmethod
    def from_file_path(cls, path: str | bytes | os.PathLike) -> "URL":
        from .filepath import path_to_url

        return path_to_url(path)

    @classmethod
    def from_directory_path(cls, path: str | bytes | os.PathLike) -> "URL":
        from .filepath import dir_path_to_url

        return dir_path_to_url(path)

    def to_file_path(self: Self) -> pathlib.PurePath:
        from .filepath import url_to_path

        return url_to_path(self)

    def join(self: Self, reference: str) -> "URL":
        """Resolves reference against this URL."""
        from .parser import parse_url

        return parse_url(reference, self)

    @property
    def scheme(self: Self) -> str:
        return self.raw_scheme

    @property
    def is_special(self: Self) -> bool:
        return self.raw_scheme in SPECIAL_SCHEMES

    @property
    def cannot_be_a_base(self: Self) -> bool:
        return isinstance(self.raw_path, str)

    @property
    def username(self: Self) -> str:
        return self.raw_username

    @property
    def password(self: Self) -> str | None:
        return self.raw_password

    @property
    def host(self: Self) -> Host | None:
        return self.raw_host

    @property
    def host_str(self: Self) -> str | None:
        return str(self.raw_host) if self.raw_host is not None else None

    @property
    def domain(self: Self) -> str | None:
        return self.raw_host.name if isinstance(self.raw_host, Domain) else None

    @property
    def port(self: Self) -> int | None:
        return self.raw_port

    @property
    def port_or_known_default(self: Self) -> int | None:
        if self.raw_port is not None:
            return self.raw_port
        return DEFAULT_PORTS.get(self.raw_scheme)

    @property
    def path(self: Self) -> str:
        if isinstance(self.raw_path, str):
            return self.raw_path
        return "".join(f"/{segment}" for segment in self.raw_path)

    @property
    def path_segments(self: Self) -> list[str] | None:
        if isinstance(self.raw_path, str):
            return None
        return list(self.raw_path)

    @property
    def query(self: Self) -> str | None:
        return self.raw_query

    @property
    def fragment(self: Self) -> str | None:
        return self.raw_fragment

    def query_pairs(self: Self) -> list[tuple[str, str]]:
        """Decodes the query as application/x-www-form-urlencoded pairs."""
        if self.raw_query is None:
            return []
        return parse_qsl(self.raw_query, keep_blank_values=True)

    @property
    def origin(self: Self) -> Origin | None:
        """The (scheme, host, port) tuple origin, or None when the origin is opaque."""
        port: int | None = self.port_or_known_default
        if self.raw_scheme == "file" or not self.is_special or self.raw_host is None or port is None:
            return None
        return Origin(self.raw_scheme, self.raw_host, port)

    @property
    def authority(self: Self) -> str | None:
        """userinfo@host:port"""
        if not self.has_authority:
            return None
        result: str = ""
        if self.raw_username or self.raw_password is not None:
            result += self.raw_username
            if self.raw_password is not None:
                result += f":{self.raw_password}"
            result += "@"
        if self.raw_host is not None:
            result += str(self.raw_host)
        if self.raw_port is not None:
            result += f":{self.raw_port}"
        return result

    def serialize(self: Self) -> str:
        return self._serialization

    def as_str(self: Self) -> str:
        return self._serialization

    @functools.cached_property
    def _serialization(self: Self) -> str:
        """Implementation of the URL serializer from the WHATWG URL Standard, section 4.5"""
        result: str = f"{self.raw_scheme}:"
        if self.has_authority:
            result += f"//{self.authority}"
        elif not isinstance(self.raw_path, str) and len(self.raw_path) > 1 and self.raw_path[0] == "":
            # Keeps a path like "//x" from being read back as an authority.
            result += "/."
        result += self.path
        if self.raw_query is not None:
            result += f"?{self.raw_query}"
        if self.raw_fragment is not None:
            result += f"#{self.raw_fragment}"
        return result

    def __str__(self: Self) -> str:
        return self._serialization

    def __repr__(self: Self) -> str:
        return f"{self.__class__.__name__}({self._serialization!r})"

    def __eq__(self: Self, other: object) -> bool:
        if not isinstance(other, URL):
            return NotImplemented
        return self._serialization == other._serialization

    def __hash__(self: Self) -> int:
        return hash(self._serialization)

    # Setters. Each returns a new URL and leaves self untouched.

    def with_scheme(self: Self, scheme: str) -> Self:
        from .parser import parse_scheme

        new_scheme: str = parse_scheme(scheme)
        if (new_scheme in SPECIAL_SCHEMES) != self.is_special:
            raise CannotSetComponentError(f"cannot change scheme {self.raw_scheme!r} to {new_scheme!r}")
        if new_scheme == "file" and (self.raw_username or self.raw_password is not None or self.raw_port is not None):
            raise CannotSetComponentError("file URLs cannot have credentials or a port")
        if new_scheme in SPECIAL_SCHEMES and new_scheme != "file" and self.raw_host is None:
            raise EmptyHostError()
        port: int | None = self.raw_port
        if port is not None and port == DEFAULT_PORTS.get(new_scheme):
            logger.debug("dropping default port %d of %s", port, new_scheme)
            port = None
        host: Host | None = self.raw_host
        if new_scheme == "file" and host == Domain("localhost"):
            host = None
        return dataclasses.replace(self, raw_scheme=new_scheme, raw_host=host, raw_port=port)

    def _check_can_have_credentials(self: Self) -> None:
        if self.raw_host is None or self.raw_scheme == "file" or self.cannot_be_a_base:
            raise CannotSetComponentError(f"{self} cannot have a username, password or port")

    def with_username(self: Self, username: str) -> Self:
        from .parser import parse_userinfo_part

        self._check_can_have_credentials()
        return dataclasses.replace(self, raw_username=parse_userinfo_part(username))

    def with_password(self: Self, password: str | None) -> Self:
        from .parser import parse_userinfo_part

        self._check_can_have_credentials()
        if password is None:
            return dataclasses.replace(self, raw_password=None)
        return dataclasses.replace(self, raw_password=parse_userinfo_part(password))

    def with_host(self: Self, host: str | None) -> Self:
        from .host import parse_host

        if self.cannot_be_a_base:
            raise CannotSetComponentError(f"{self} cannot have a host")
        new_host: Host | None = None
        if host:
            new_host = parse_host(host, self.is_special)
        if self.raw_scheme == "file":
            if new_host == Domain("localhost"):
                new_host = None
        elif new_host is None:
            if self.is_special:
                raise EmptyHostError()
            if self.raw_username or self.raw_password is not None or self.raw_port is not None:
                raise CannotSetComponentError(f"{self} has credentials or a port and needs a host")
        return dataclasses.replace(self, raw_host=new_host, has_authority=self.has_authority or new_host is not None)

    def with_port(self: Self, port: int | None) -> Self:
        from .parser import parse_port

        self._check_can_have_credentials()
        if port is None:
            return dataclasses.replace(self, raw_port=None)
        return dataclasses.replace(self, raw_port=parse_port(str(port), self.raw_scheme))

    def with_path(self: Self, path: str) -> Self:
        from .parser import parse_path

        if self.cannot_be_a_base:
            raise CannotSetComponentError(f"{self} has an opaque path")
        segments: tuple[str, ...] = parse_path(path, [], self.raw_scheme)
        return dataclasses.replace(self, raw_path=segments)

    def with_query(self: Self, query: str | None) -> Self:
        from .parser import parse_query

        if query is None:
            return dataclasses.replace(self, raw_query=None)
        return dataclasses.replace(self, raw_query=parse_query(query, self.is_special))

    def with_fragment(self: Self, fragment: str | None) -> Self:
        from .parser import parse_fragment

        if fragment is None:
            return dataclasses.replace(self, raw_fragment=None)
        return dataclasses.replace(self, raw_fragment=parse_fragment(fragment))

