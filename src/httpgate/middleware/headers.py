"""
Default response headers.

A fixed list of (name, value) pairs set on every response before the
handler runs, typically security headers:

    DEFAULT_HEADERS = [
        ("X-Content-Type-Options", "nosniff"),
        ("X-Frame-Options", "SAMEORIGIN"),
        ("X-XSS-Protection", "1; mode=block"),
    ]

Entries that are not exactly a (name, value) pair are skipped without an
error, so a configuration read from the environment or the command line
cannot take the server down.
"""

import logging
from collections.abc import Sequence
from typing import Iterable, MutableMapping, Tuple


logger = logging.getLogger(__name__)

HeaderPair = Sequence[str]


def apply_default_headers(headers: MutableMapping[str, str], pairs: Iterable[HeaderPair]) -> None:
    """
    Set each well-formed (name, value) pair on `headers`, in order.

    A later pair with the same name overwrites an earlier one. Handlers
    run afterwards and may overwrite any of these values.
    """
    for pair in pairs:
        if isinstance(pair, (str, bytes)) or not isinstance(pair, Sequence) or len(pair) != 2:
            logger.debug(f"Skipping malformed default header entry: {pair!r}")
            continue
        name, value = pair
        headers[name] = value


def parse_header_argument(text: str) -> Tuple[str, ...]:
    """
    Parse "Name: value" into a (name, value) pair.

    Text without a colon, or with an empty name, comes back as a
    one-element tuple; apply_default_headers() will skip it.

    Examples:
        >>> parse_header_argument("X-Frame-Options: SAMEORIGIN")
        ('X-Frame-Options', 'SAMEORIGIN')
        >>> parse_header_argument("X-XSS-Protection: 1; mode=block")
        ('X-XSS-Protection', '1; mode=block')
        >>> parse_header_argument("garbage")
        ('garbage',)
    """
    name, sep, value = text.partition(":")
    name = name.strip()
    if not sep or not name:
        return (text,)
    return (name, value.strip())
