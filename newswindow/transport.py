#!/usr/bin/env python3.13
from __future__ import annotations
import socket
import ssl
import time
from datetime import datetime

import socks

from newswindow.errors import ConnectError, ReadError, ReadTimeout

RECV_SIZE = 65536


def tls_context(verify: bool = False) -> ssl.SSLContext:
    """Client TLS context.

    Certificate checks are off unless ``verify`` is set: news servers reached
    over anonymity networks commonly present self-signed certificates.
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def parse_proxy(address: str) -> tuple[str, int]:
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConnectError(f"invalid proxy address: {address}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


class Transport:
    """Line-buffered duplex byte stream over a connected socket."""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._buffer = bytearray()
        self._deadline: float | None = None

    def set_deadline(self, seconds: float | None = None, *, at: datetime | None = None) -> None:
        if at is not None:
            now = datetime.now(at.tzinfo)
            seconds = (at - now).total_seconds()
        if seconds is None:
            self._deadline = None
            return
        self._deadline = time.monotonic() + seconds

    def clear_deadline(self) -> None:
        self._deadline = None

    def _remaining(self) -> float | None:
        if self._deadline is None:
            return None
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise ReadTimeout("read deadline exceeded")
        return remaining

    def _recv(self) -> bytes:
        if self.sock is None:
            raise ReadError("Not connected")
        self.sock.settimeout(self._remaining())
        try:
            return self.sock.recv(RECV_SIZE)
        except TimeoutError as exc:
            raise ReadTimeout("read deadline exceeded") from exc
        except OSError as exc:
            raise ReadError(f"read failed: {exc}") from exc

    def readline(self) -> bytes:
        while True:
            idx = self._buffer.find(b"\n")
            if idx >= 0:
                line = bytes(self._buffer[: idx + 1])
                del self._buffer[: idx + 1]
                return line
            chunk = self._recv()
            if not chunk:
                line = bytes(self._buffer)
                self._buffer.clear()
                return line
            self._buffer.extend(chunk)

    def write(self, data: bytes) -> None:
        if self.sock is None:
            raise ReadError("Not connected")
        self.sock.settimeout(self._remaining())
        try:
            self.sock.sendall(data)
        except TimeoutError as exc:
            raise ReadTimeout("write deadline exceeded") from exc
        except OSError as exc:
            raise ReadError(f"write failed: {exc}") from exc

    def close(self) -> None:
        sock, self.sock = self.sock, None
        if sock is not None:
            sock.close()


def _open_proxied(server: str, port: int, proxy: str, timeout: float) -> socket.socket:
    proxy_host, proxy_port = parse_proxy(proxy)
    sock = socks.socksocket()
    sock.settimeout(timeout)
    sock.set_proxy(socks.SOCKS5, proxy_host, proxy_port, rdns=True)
    try:
        sock.connect((server, port))
    except (socks.ProxyError, OSError) as exc:
        sock.close()
        raise ConnectError(f"proxy dial failed: {exc}") from exc
    return sock


def connect(
    server: str,
    port: int,
    use_tls: bool = False,
    proxy: str | None = None,
    *,
    verify_tls: bool = False,
    connect_timeout: float = 30.0,
) -> Transport:
    if proxy:
        sock = _open_proxied(server, port, proxy, connect_timeout)
    else:
        try:
            sock = socket.create_connection((server, port), timeout=connect_timeout)
        except OSError as exc:
            raise ConnectError(f"dial {server}:{port} failed: {exc}") from exc

    if use_tls:
        try:
            sock = tls_context(verify_tls).wrap_socket(sock, server_hostname=server)
        except (ssl.SSLError, OSError) as exc:
            sock.close()
            raise ConnectError(f"TLS handshake with {server} failed: {exc}") from exc

    return Transport(sock)
