"""Shared test fixtures for the crudline test suite.

Servers under test bind an ephemeral loopback port (port 0) so they never
collide with a real server on 5555.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from crudline.config.settings import ServerConfig
from crudline.server.lifecycle import ServerLifecycle

STARTUP_TIMEOUT = 5.0


def send_raw(address: tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Connect, send ``data``, half-close, and read until the server closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        if data:
            sock.sendall(data)
        sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def stop_lifecycle(lifecycle: ServerLifecycle) -> None:
    """Cancel the listener and wait for its thread to finish."""
    lifecycle.listener.request_stop()
    if lifecycle._thread is not None:
        lifecycle._thread.join(STARTUP_TIMEOUT)


# ---------------------------------------------------------------------------
# Config Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def server_config() -> ServerConfig:
    """Loopback config on an ephemeral port."""
    return ServerConfig(host="127.0.0.1", port=0)


@pytest.fixture
def free_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


# ---------------------------------------------------------------------------
# Server Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def lifecycle(server_config: ServerConfig) -> Iterator[ServerLifecycle]:
    """A started server lifecycle, stopped on teardown."""
    lc = ServerLifecycle(config=server_config)
    assert lc.start() is True
    assert lc.listener.ready.wait(STARTUP_TIMEOUT), "listener did not start"
    yield lc
    stop_lifecycle(lc)


@pytest.fixture
def server_address(lifecycle: ServerLifecycle) -> tuple[str, int]:
    """The (host, port) of the running test server."""
    address = lifecycle.listener.address
    assert address is not None
    return address
