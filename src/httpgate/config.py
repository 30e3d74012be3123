"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything needed to serve a directory through a gated, gzip-capable
envelope, in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httpgate ./public --port 3000                    │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPGATE_PORT=3000 python -m httpgate                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The configuration is built once at startup and only read afterwards.
Handlers copy what they need at construction, so nothing here is
consulted per request.

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "How do you pass a list of header pairs through an environment variable?"
A: "As JSON: HTTPGATE_DEFAULT_HEADERS='[[\"X-Frame-Options\", \"DENY\"]]'.
   Comma-splitting breaks on header values that contain commas, and
   many of them do (Cache-Control, Content-Security-Policy)."

Q: "When do you validate configuration?"
A: "Eagerly, before binding the socket. A typo in the log level should
   stop the process at startup, not surface on the first request."

=============================================================================
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .handlers.static import INDEX_FILE, NOT_FOUND_DOCUMENT
from .middleware.compression import DEFAULT_LEVEL


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class ServerConfig:
    """
    Configuration for serving a directory.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, server_name

    FILES
    - root_dir, not_found_document, index_file

    ENVELOPE AND GATE
    - default_headers, allowed_methods, allowed_origins, compression_level

    LOGGING
    - log_level

    =========================================================================
    EXAMPLE
    =========================================================================

        ServerConfig(
            host="0.0.0.0",
            root_dir="/var/www",
            default_headers=[("X-Content-Type-Options", "nosniff")],
            allowed_methods=("GET", "HEAD"),
        )

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" for all interfaces."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick one."""

    server_name: str = "httpgate/1.0"
    """Value of the Server response header."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."

    not_found_document: str = NOT_FOUND_DOCUMENT
    """Served with status 404 when a file or directory index is missing."""

    index_file: str = INDEX_FILE

    # ─────────────────────────────────────────────────────────────────────
    # ENVELOPE AND GATE
    # ─────────────────────────────────────────────────────────────────────

    default_headers: List[Tuple[str, str]] = field(default_factory=list)
    """(name, value) pairs set on every response, in order."""

    allowed_methods: Tuple[str, ...] = ("GET", "HEAD")
    """Method tokens let through the gate. Compared exactly."""

    allowed_origins: Tuple[str, ...] = ()
    """Origin values let through the gate. Empty disables the check."""

    compression_level: int = DEFAULT_LEVEL
    """gzip level, 0 (store) to 9 (smallest)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPGATE_HOST             Bind address (default: 127.0.0.1)
        HTTPGATE_PORT             Port (default: 8080)
        HTTPGATE_ROOT             Directory to serve (default: .)
        HTTPGATE_DEFAULT_HEADERS  JSON list of [name, value] pairs
        HTTPGATE_METHODS          Comma-separated methods (default: GET,HEAD)
        HTTPGATE_ORIGINS          Comma-separated origins (default: none)
        HTTPGATE_LOG_LEVEL        Logging level (default: INFO)

        =====================================================================

        Raises:
            ValueError: If HTTPGATE_PORT is not an integer or
                        HTTPGATE_DEFAULT_HEADERS is not valid JSON.
        """
        raw_headers = os.getenv("HTTPGATE_DEFAULT_HEADERS")
        default_headers: List[Tuple[str, str]] = []
        if raw_headers:
            try:
                decoded = json.loads(raw_headers)
            except json.JSONDecodeError as exc:
                raise ValueError(f"HTTPGATE_DEFAULT_HEADERS is not valid JSON: {exc}") from exc
            if not isinstance(decoded, list):
                raise ValueError("HTTPGATE_DEFAULT_HEADERS must be a JSON list of pairs")
            default_headers = [tuple(pair) for pair in decoded if isinstance(pair, list)]

        methods = _split_list(os.getenv("HTTPGATE_METHODS"))

        return cls(
            host=os.getenv("HTTPGATE_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTPGATE_PORT", "8080")),
            root_dir=os.getenv("HTTPGATE_ROOT", "."),
            default_headers=default_headers,
            allowed_methods=methods or ("GET", "HEAD"),
            allowed_origins=_split_list(os.getenv("HTTPGATE_ORIGINS")),
            log_level=os.getenv("HTTPGATE_LOG_LEVEL", "INFO"),
        )

    @property
    def numeric_log_level(self) -> int:
        """log_level as a logging module constant (INFO if unknown)."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not 0 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be 0-9, got {self.compression_level}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if not Path(self.root_dir).is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")
