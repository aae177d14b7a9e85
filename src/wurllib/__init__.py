__version__ = "0.1"

from .errors import CannotSetComponentError, EmptyHostError, HostParseError, InvalidDomainError, InvalidIpv6Error, InvalidPortError, Ipv4OutOfRangeError, ParseError, PathConversionError, RelativeUrlWithoutBaseError, SchemeMissingError, UrlError
from .filepath import PathConverter, PosixPathConverter, WindowsPathConverter, dir_path_to_url, path_to_url, url_to_path
from .host import Domain, Host, Ipv4, Ipv6, domain_to_ascii, parse_host, parse_ipv4, parse_ipv6, serialize_ipv6
from .parser import ParseOptions, parse_url
from .percent import ENCODE_SETS, percent_decode, percent_encode, utf8_percent_encode
from .url import DEFAULT_PORTS, SPECIAL_SCHEMES, URL, Origin
