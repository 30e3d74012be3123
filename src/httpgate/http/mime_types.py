"""
=============================================================================
MIME TYPES BY EXTENSION
=============================================================================

The file server decides a file's Content-Type in two steps:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 CONTENT-TYPE FOR A SERVED FILE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Handler (or resolver) already set one?   → keep it             │
    │   2. Extension known to this table?           → use it              │
    │   3. Otherwise                                → sniff the content   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

This module is step 2. Unknown extensions return None instead of a
default so that step 3 gets a chance; a file named "README" with HTML in
it is better served as text/html than as application/octet-stream.

=============================================================================
"""

from pathlib import PurePosixPath
from typing import Optional


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, with dot) to MIME types.
#
# =============================================================================

MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".xml": "text/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".eot": "application/vnd.ms-fontobject",

    # Audio / video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

# Non text/* types that still take a charset parameter.
_TEXTUAL = {
    "application/json",
    "image/svg+xml",
}


def is_text_type(mime_type: str) -> bool:
    """True for MIME types that should carry a charset parameter."""
    return mime_type.startswith("text/") or mime_type in _TEXTUAL


def type_by_extension(name: str, charset: str = "utf-8") -> Optional[str]:
    """
    Get the Content-Type for a file name from its extension.

    Args:
        name: File name or slash-separated path
        charset: Charset appended to text types

    Returns:
        The Content-Type value, or None if the extension is unknown

    Examples:
        >>> type_by_extension("/docs/page.HTML")
        'text/html; charset=utf-8'
        >>> type_by_extension("logo.png")
        'image/png'
        >>> type_by_extension("Makefile") is None
        True
    """
    extension = PurePosixPath(name).suffix.lower()
    mime_type = MIME_TYPES.get(extension)
    if mime_type is None:
        return None
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
