"""
=============================================================================
RESPONSE WRAPPERS
=============================================================================

Pieces the handler envelope applies around every handler:

GzipResponseWriter:
    Gzip-encodes the body when the client advertises gzip support,
    sniffing the Content-Type from the first uncompressed write.

apply_default_headers:
    Sets the configured (name, value) pairs on every response.

These are not a middleware chain. The envelope applies both, in a fixed
order, around exactly one handler.

=============================================================================
"""

from .compression import GzipResponseWriter, GzipStream, accepts_gzip
from .headers import apply_default_headers, parse_header_argument

__all__ = [
    "GzipResponseWriter",
    "GzipStream",
    "accepts_gzip",
    "apply_default_headers",
    "parse_header_argument",
]
