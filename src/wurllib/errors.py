"""wurllib.errors
Exception hierarchy for URL parsing and file path conversion.
"""


class UrlError(ValueError):
    """Base exception for all wurllib errors."""


class ParseError(UrlError):
    """The input could not be parsed as a URL."""


class EmptyHostError(ParseError):
    """A URL that requires a host has an empty one."""

    def __init__(self, message: str = "empty host"):
        super().__init__(message)


class InvalidPortError(ParseError):
    """The port is not a decimal number in 0-65535, or the URL cannot have one."""


class RelativeUrlWithoutBaseError(ParseError):
    """A relative reference was given without a usable base URL."""

    def __init__(self, message: str = "relative URL without a base"):
        super().__init__(message)


class SchemeMissingError(ParseError):
    """The input does not start with a scheme and cannot be a relative reference."""

    def __init__(self, message: str = "scheme missing"):
        super().__init__(message)


class CannotSetComponentError(ParseError):
    """
    A setter was applied to a URL that cannot carry the component.
    For example, credentials on a URL without a host.
    """


class HostParseError(ParseError):
    """Base exception for host classification failures."""


class InvalidIpv6Error(HostParseError):
    """A bracketed host is not a valid IPv6 address."""


class Ipv4OutOfRangeError(HostParseError):
    """An all-numeric host has a part exceeding its range."""


class InvalidDomainError(HostParseError):
    """A domain contains forbidden code points or was rejected by IDNA."""


class PathConversionError(UrlError):
    """A native path and a file URL could not be converted into each other."""
