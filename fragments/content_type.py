"""Media type parsing for Content-Type header values."""

import re
from dataclasses import dataclass, field
from typing import Dict

from fragments.exceptions import FragmentsException


# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"

_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")

# ; name=value  where value is a token or a quoted-string
_PARAM_RE = re.compile(
    rf'\s*;\s*({_TOKEN})\s*=\s*("(?:[\t\x20\x21\x23-\x5b\x5d-\x7e\x80-\xff]|\\[\t\x20-\x7e\x80-\xff])*"|{_TOKEN})\s*'
)

_QUOTED_PAIR_RE = re.compile(r"\\([\t\x20-\x7e\x80-\xff])")


class ContentTypeParseError(FragmentsException):
    """
    Raised when a value is not a syntactically valid media type.
    """
    pass


@dataclass(frozen=True)
class ContentType:
    """
    A parsed media type: bare type/subtype plus its parameters.
    """
    type: str
    parameters: Dict[str, str] = field(default_factory=dict)


def parse_content_type(value) -> ContentType:
    """
    Parse a Content-Type header value.

    Args:
        value: Raw header value (e.g. "text/plain; charset=utf-8")

    Returns:
        ContentType with a lower-cased type and lower-cased parameter names

    Raises:
        ContentTypeParseError: If value is not a string or not a valid media type
    """
    if not isinstance(value, str) or not value:
        raise ContentTypeParseError("argument must be a non-empty string")

    index = value.find(";")
    media_type = (value[:index] if index != -1 else value).strip()

    if not _TYPE_RE.match(media_type):
        raise ContentTypeParseError(f"invalid media type: {media_type!r}")

    parameters = {}

    if index != -1:
        position = index
        for match in _PARAM_RE.finditer(value, index):
            if match.start() != position:
                raise ContentTypeParseError(f"invalid parameter format in {value!r}")

            position = match.end()
            name = match.group(1).lower()
            param_value = match.group(2)

            if param_value.startswith('"'):
                param_value = _QUOTED_PAIR_RE.sub(r"\1", param_value[1:-1])

            parameters[name] = param_value

        if position != len(value):
            raise ContentTypeParseError(f"invalid parameter format in {value!r}")

    return ContentType(type=media_type.lower(), parameters=parameters)


def normalize_mime(value) -> str:
    """
    Strip parameters from a Content-Type value, returning the bare type/subtype.

    Raises:
        ContentTypeParseError: If value is not a valid media type
    """
    return parse_content_type(value).type
