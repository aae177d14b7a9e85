"""wurllib.filepath
Conversion between file URLs and native filesystem paths.
POSIX and Windows paths are handled by two separate converters; the one
matching the running platform backs URL.from_file_path and URL.to_file_path.
"""

import abc
import dataclasses
import os
import pathlib
import re
import sys

from typing import Self

from .errors import HostParseError, PathConversionError
from .host import Domain, Host, parse_host
from .percent import FILE_PATH_COMPONENT, percent_decode, percent_encode
from .url import URL

# drive = ALPHA ":" "\"
_WINDOWS_DRIVE_ROOT_PAT: re.Pattern[str] = re.compile(r"(?P<letter>[A-Za-z]):\\")

# drive letter segment = ALPHA ( ":" / "|" )
_WINDOWS_DRIVE_LETTER_PAT: re.Pattern[str] = re.compile(r"[A-Za-z][:|]")

_VERBATIM_UNC_PREFIX: str = "\\\\?\\UNC\\"
_VERBATIM_PREFIX: str = "\\\\?\\"


def _file_url(host: Host | None, segments: list[str]) -> URL:
    return URL(
        raw_scheme="file",
        raw_username="",
        raw_password=None,
        raw_host=host,
        raw_port=None,
        raw_path=tuple(segments),
        raw_query=None,
        raw_fragment=None,
    )


def _file_segments(url: URL) -> tuple[str, ...]:
    if url.raw_scheme != "file":
        raise PathConversionError(f"not a file URL: {url}")
    if isinstance(url.raw_path, str):
        raise PathConversionError(f"file URL with an opaque path: {url}")
    return url.raw_path


class PathConverter(abc.ABC):
    """Common base of the platform converters."""

    @abc.abstractmethod
    def path_to_url(self: Self, path: str | bytes | os.PathLike) -> URL: ...

    @abc.abstractmethod
    def url_to_path(self: Self, url: URL) -> pathlib.PurePath: ...

    def dir_path_to_url(self: Self, path: str | bytes | os.PathLike) -> URL:
        """Like path_to_url, but the URL path always ends with "/"."""
        url: URL = self.path_to_url(path)
        if isinstance(url.raw_path, tuple) and url.raw_path[-1] != "":
            url = dataclasses.replace(url, raw_path=url.raw_path + ("",))
        return url


class PosixPathConverter(PathConverter):
    """Paths are byte strings; str paths are encoded with surrogateescape, so undecodable bytes survive."""

    def __init__(self: Self, path_class: type[pathlib.PurePath] = pathlib.PurePosixPath, encoding: str = "utf-8") -> None:
        self.path_class: type[pathlib.PurePath] = path_class
        self.encoding: str = encoding

    def path_to_url(self: Self, path: str | bytes | os.PathLike) -> URL:
        raw: str | bytes = os.fspath(path)
        if isinstance(raw, str):
            raw = raw.encode(self.encoding, "surrogateescape")
        if not raw.startswith(b"/"):
            raise PathConversionError(f"not an absolute path: {path!r}")

        components: list[bytes] = [component for component in raw.split(b"/") if component not in (b"", b".")]
        if b".." in components:
            raise PathConversionError(f"parent directory reference in path: {path!r}")
        # Exactly two leading slashes are significant; the URL path keeps them as "//".
        segments: list[str] = [""] if raw.startswith(b"//") and not raw.startswith(b"///") else []
        segments.extend(percent_encode(component, FILE_PATH_COMPONENT) for component in components)
        if not components:
            segments.append("")
        return _file_url(None, segments)

    def url_to_path(self: Self, url: URL) -> pathlib.PurePath:
        segments: tuple[str, ...] = _file_segments(url)
        if url.raw_host is not None:
            raise PathConversionError(f"cannot represent host {url.host_str!r} in a POSIX path")

        components: list[bytes] = []
        for segment in segments:
            component: bytes = percent_decode(segment)
            if b"/" in component:
                raise PathConversionError(f"path segment {segment!r} contains a slash")
            components.append(component)
        raw: bytes = b"/" + b"/".join(components)
        return self.path_class(raw.decode(self.encoding, "surrogateescape"))


class WindowsPathConverter(PathConverter):
    """Paths are text; components are UTF-8 in the URL. Drive letters become the first segment, UNC servers the host."""

    def __init__(self: Self, path_class: type[pathlib.PurePath] = pathlib.PureWindowsPath) -> None:
        self.path_class: type[pathlib.PurePath] = path_class

    def path_to_url(self: Self, path: str | bytes | os.PathLike) -> URL:
        text: str = os.fsdecode(path).replace("/", "\\")
        if text.startswith(_VERBATIM_UNC_PREFIX):
            text = "\\\\" + text[len(_VERBATIM_UNC_PREFIX) :]
        elif text.startswith(_VERBATIM_PREFIX):
            text = text[len(_VERBATIM_PREFIX) :]

        host: Host | None = None
        segments: list[str]
        if text.startswith("\\\\"):
            server, _, rest = text[2:].partition("\\")
            share, _, rest = rest.partition("\\")
            if not server or not share:
                raise PathConversionError(f"incomplete UNC path: {path!r}")
            try:
                host = parse_host(server, True)
            except HostParseError as exc:
                raise PathConversionError(f"invalid UNC server {server!r}") from exc
            if host == Domain("localhost"):
                raise PathConversionError(f"UNC server {server!r} cannot be the host of a file URL")
            segments = [self._encode(share)]
        else:
            m: re.Match[str] | None = _WINDOWS_DRIVE_ROOT_PAT.match(text)
            if m is None:
                raise PathConversionError(f"not an absolute path: {path!r}")
            rest = text[m.end() :]
            segments = [f"{m['letter']}:"]

        components: list[str] = [component for component in rest.split("\\") if component not in ("", ".")]
        if ".." in components:
            raise PathConversionError(f"parent directory reference in path: {path!r}")
        segments.extend(self._encode(component) for component in components)
        if host is None and len(segments) == 1:
            segments.append("")
        return _file_url(host, segments)

    @staticmethod
    def _encode(component: str) -> str:
        return percent_encode(component.encode("utf-8", "surrogatepass"), FILE_PATH_COMPONENT)

    def url_to_path(self: Self, url: URL) -> pathlib.PurePath:
        components: list[str] = []
        for segment in _file_segments(url):
            try:
                component: str = percent_decode(segment).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise PathConversionError(f"path segment {segment!r} is not valid UTF-8") from exc
            if "\\" in component or "/" in component:
                raise PathConversionError(f"path segment {segment!r} contains a separator")
            components.append(component)

        if url.raw_host is not None:
            return self.path_class(f"\\\\{url.host_str}\\" + "\\".join(components))
        if not components or _WINDOWS_DRIVE_LETTER_PAT.fullmatch(components[0]) is None:
            raise PathConversionError(f"file URL without a drive letter: {url}")
        return self.path_class(f"{components[0][0]}:\\" + "\\".join(components[1:]))


def _native_converter() -> PathConverter:
    if os.name == "nt":
        return WindowsPathConverter(pathlib.Path)
    return PosixPathConverter(pathlib.Path, sys.getfilesystemencoding())


_NATIVE: PathConverter = _native_converter()


def path_to_url(path: str | bytes | os.PathLike) -> URL:
    """Converts an absolute native path to a file URL.
    e.g. path_to_url("/foo/bar").path == "/foo/bar"
    """
    return _NATIVE.path_to_url(path)


def dir_path_to_url(path: str | bytes | os.PathLike) -> URL:
    return _NATIVE.dir_path_to_url(path)


def url_to_path(url: URL) -> pathlib.PurePath:
    return _NATIVE.url_to_path(url)
