"""Minimal memcached client for caching property JSON."""

from __future__ import annotations

import logging
import socket
import threading
from typing import BinaryIO

log = logging.getLogger(__name__)

DEFAULT_HOST = "memcached"
DEFAULT_PORT = 11211
DEFAULT_TIMEOUT = 0.5
MAX_KEY_LENGTH = 250


class _ProtocolError(Exception):
    pass


def _legal_key(key: str) -> bool:
    raw = key.encode("utf-8")
    if not raw or len(raw) > MAX_KEY_LENGTH:
        return False
    return all(byte > 0x20 and byte != 0x7F for byte in raw)


class MemcacheClient:
    """Talks the memcached text protocol over one lazily opened connection.

    Failures are logged and never raised: ``set`` then does nothing and
    ``get`` returns an empty string, as for a miss.
    """

    timeout: float = DEFAULT_TIMEOUT

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self._address = (host, port)
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "MemcacheClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _connection(self) -> tuple[socket.socket, BinaryIO]:
        if self._sock is None or self._reader is None:
            sock = socket.create_connection(self._address, timeout=self.timeout)
            self._sock = sock
            self._reader = sock.makefile("rb")
        return self._sock, self._reader

    def _reset(self) -> None:
        for resource in (self._reader, self._sock):
            if resource is not None:
                try:
                    resource.close()
                except OSError:
                    pass
        self._sock = None
        self._reader = None

    def set(self, key: str, value: bytes | str) -> None:
        """Store ``value`` under ``key`` with no expiry."""
        data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        if not _legal_key(key):
            log.warning("illegal cache key %r", key)
            return
        command = b"set %s 0 0 %d\r\n%s\r\n" % (key.encode("utf-8"), len(data), data)
        with self._lock:
            try:
                sock, reader = self._connection()
                sock.sendall(command)
                reply = reader.readline()
            except OSError as exc:
                log.warning("cache set of %s failed: %s", key, exc)
                self._reset()
                return
            if reply != b"STORED\r\n":
                log.warning("cache set of %s failed: %r", key, reply)
                self._reset()

    def get(self, key: str) -> str:
        """Return the cached text under ``key``, or ``""`` when absent or on error."""
        if not _legal_key(key):
            log.warning("illegal cache key %r", key)
            return ""
        with self._lock:
            try:
                sock, reader = self._connection()
                sock.sendall(b"get %s\r\n" % key.encode("utf-8"))
                value = self._read_value(reader)
            except (OSError, _ProtocolError) as exc:
                log.warning("cache get of %s failed: %s", key, exc)
                self._reset()
                return ""
        if value is None:
            return ""
        return value.decode("utf-8", errors="replace")

    @staticmethod
    def _read_value(reader: BinaryIO) -> bytes | None:
        value: bytes | None = None
        while True:
            line = reader.readline()
            if line == b"END\r\n":
                return value
            if not line.startswith(b"VALUE "):
                raise _ProtocolError(f"unexpected reply {line!r}")
            parts = line.split()
            try:
                length = int(parts[3])
            except (IndexError, ValueError) as exc:
                raise _ProtocolError(f"malformed value line {line!r}") from exc
            data = reader.read(length + 2)
            if len(data) != length + 2 or not data.endswith(b"\r\n"):
                raise _ProtocolError("truncated value")
            value = data[:-2]

    def close(self) -> None:
        """Close the connection; a later call opens a new one."""
        with self._lock:
            self._reset()