"""Conversions between a fragment's stored type and requested representations."""

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from markdown_it import MarkdownIt

from fragments.exceptions import UnsupportedConversionError


# Same rules as markdown-it's JS default preset: tables and strikethrough on, raw HTML off
_markdown = MarkdownIt("js-default")


@dataclass(frozen=True)
class Conversion:
    """
    The representation returned for a read.
    """
    content_type: str
    body: bytes


def render_markdown(data: bytes) -> bytes:
    """
    Render Markdown source to HTML.
    """
    return _markdown.render(data.decode("utf-8", errors="replace")).encode("utf-8")


Renderer = Callable[[bytes], bytes]

# (stored mime type, requested extension) -> (output mime type, renderer)
CONVERSIONS: Dict[Tuple[str, str], Tuple[str, Renderer]] = {
    ("text/markdown", "html"): ("text/html", render_markdown),
}


def convert(mime_type: str, extension: str, data: bytes) -> Conversion:
    """
    Convert fragment data to the representation named by an extension.

    Args:
        mime_type: Bare mime type of the stored fragment
        extension: Requested extension without the dot (e.g. 'html')
        data: Stored fragment bytes

    Returns:
        Conversion with the output content type and body

    Raises:
        UnsupportedConversionError: If no conversion exists for the pair
    """
    entry = CONVERSIONS.get((mime_type, extension.lower()))
    if entry is None:
        raise UnsupportedConversionError(f"Cannot convert {mime_type} to .{extension}")

    content_type, renderer = entry
    return Conversion(content_type=content_type, body=renderer(data))
