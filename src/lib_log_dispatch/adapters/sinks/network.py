"""Network sink shipping newline-delimited payloads over TCP or UDP.

Purpose
-------
Forward encoded records (typically JSON lines) to a collector such as
Logstash, Fluent Bit, or Vector.

Contents
--------
* :class:`SocketSink` - :class:`SinkPort` adapter with lazy (re)connection.

System Role
-----------
A failed send closes the connection and reports ``False`` so the dispatcher
counts the failure; the next record reconnects. There is no retry of the
failed payload.
"""

from __future__ import annotations

import logging
import socket
import ssl
from threading import Lock

from lib_log_dispatch.application.ports.sink import SinkPort

LOGGER = logging.getLogger(__name__)

_PROTOCOLS = {"tcp", "udp"}


class SocketSink(SinkPort):
    """Send each payload to ``(host, port)``.

    Parameters
    ----------
    host, port:
        Collector endpoint.
    protocol:
        ``"tcp"`` (default) or ``"udp"``. UDP sends one datagram per record.
    timeout:
        Socket timeout in seconds for connect and send.
    use_tls:
        Wrap TCP connections with the default SSL context.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        protocol: str = "tcp",
        timeout: float = 1.0,
        use_tls: bool = False,
    ) -> None:
        normalized = protocol.strip().lower()
        if normalized not in _PROTOCOLS:
            raise ValueError(f"Unsupported socket protocol: {protocol!r}")
        if normalized == "udp" and use_tls:
            raise ValueError("TLS is only supported for TCP")
        if port <= 0 or port > 65535:
            raise ValueError(f"Invalid port: {port}")
        self._host = host
        self._port = port
        self._protocol = normalized
        self._timeout = timeout
        self._use_tls = use_tls
        self._socket: socket.socket | None = None
        self._lock = Lock()

    @property
    def endpoint(self) -> tuple[str, int]:
        return (self._host, self._port)

    def write(self, payload: bytes) -> bool:
        with self._lock:
            try:
                if self._protocol == "udp":
                    self._send_datagram(payload)
                else:
                    self._connect().sendall(payload)
            except OSError as exc:
                LOGGER.debug("socket sink %s:%s send failed: %s", self._host, self._port, exc)
                self._close_socket()
                return False
        return True

    def flush(self) -> bool:
        # Payloads are sent synchronously; nothing is buffered here.
        return True

    def close(self) -> None:
        with self._lock:
            self._close_socket()

    def _connect(self) -> socket.socket:
        if self._socket is None:
            sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
            if self._use_tls:
                context = ssl.create_default_context()
                sock = context.wrap_socket(sock, server_hostname=self._host)
            self._socket = sock
        return self._socket

    def _send_datagram(self, payload: bytes) -> None:
        if self._socket is None:
            self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self._socket.settimeout(self._timeout)
        self._socket.sendto(payload, (self._host, self._port))

    def _close_socket(self) -> None:
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None


__all__ = ["SocketSink"]
