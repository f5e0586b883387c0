"""Serial TCP accept loop for the line protocol.

Binds a loopback address, then accepts one connection at a time: read a
request line, dispatch it, write the response, close. The next
connection is not accepted until the current one is closed, so
connections are serviced strictly in acceptance order. The OS backlog is
the only queue.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import threading

from crudline.config.settings import ServerConfig
from crudline.server.protocol import RequestHandler

logger = logging.getLogger(__name__)

LINE_TERMINATORS = (b"\n", b"\r")

# Pause after a failed accept so a persistent error (e.g. EMFILE) does not spin
ACCEPT_RETRY_DELAY = 0.1


class ServerSetupError(Exception):
    """Raised when the listening socket cannot be created, bound or listened on."""

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage


async def read_request_line(reader: asyncio.StreamReader, limit: int) -> bytes:
    """Read until a line terminator, EOF, or ``limit`` bytes.

    A command split across several TCP segments is reassembled. Anything
    after the first terminator that arrived in the same chunk is left in
    the returned bytes for the caller to discard.
    """
    buf = bytearray()
    while len(buf) < limit:
        chunk = await reader.read(limit - len(buf))
        if not chunk:
            break
        buf += chunk
        if any(t in chunk for t in LINE_TERMINATORS):
            break
    return bytes(buf)


class ListenerLoop:
    """Owns the listening socket and services connections serially.

    Usage::

        listener = ListenerLoop(ServerConfig(port=5555))
        await listener.serve()          # runs until cancelled

    ``request_stop()`` may be called from any thread to cancel a running
    ``serve()``.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        handler: RequestHandler | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or ServerConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._handler = handler or RequestHandler(self._logger)
        self._sock: socket.socket | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None
        self.ready = threading.Event()

    @property
    def is_listening(self) -> bool:
        return self._sock is not None

    @property
    def address(self) -> tuple[str, int] | None:
        """The bound (host, port), or None when not listening."""
        if self._sock is None:
            return None
        host, port = self._sock.getsockname()[:2]
        return host, port

    def _open_socket(self) -> socket.socket:
        """Create, bind and listen. Any failure closes the socket."""
        host, port = self._config.host, self._config.port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        stage = "socket"
        sock: socket.socket | None = None
        try:
            sock = socket.socket(family, socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            stage = "bind"
            sock.bind((host, port))
            stage = "listen"
            sock.listen(self._config.backlog)
            sock.setblocking(False)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise ServerSetupError(f"{stage}() failed for {host}:{port}: {e}", stage=stage) from e
        return sock

    async def serve(self) -> None:
        """Run the accept loop until cancelled.

        Setup failures are logged and end the loop for good; there is no
        retry.
        """
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.current_task()
        try:
            self._sock = self._open_socket()
        except ServerSetupError as e:
            self._logger.error("%s", e)
            return

        host, port = self.address  # type: ignore[misc]
        self._logger.info("TCP server started on %s:%d", host, port)
        self.ready.set()
        try:
            while True:
                try:
                    client, peer = await self._loop.sock_accept(self._sock)
                except OSError as e:
                    self._logger.error("accept() failed: %s", e)
                    await asyncio.sleep(ACCEPT_RETRY_DELAY)
                    continue
                await self._serve_connection(client, peer)
        finally:
            self._sock.close()
            self._sock = None
            self.ready.clear()
            self._logger.info("TCP server on %s:%d stopped", host, port)

    def request_stop(self) -> None:
        """Cancel a running ``serve()``. Safe to call from any thread."""
        loop, task = self._loop, self._task
        if loop is None or task is None or task.done():
            return
        loop.call_soon_threadsafe(task.cancel)

    async def _serve_connection(self, client: socket.socket, peer: tuple) -> None:
        """Read one request, answer it, close the connection."""
        self._logger.debug("Accepted connection from %s", peer[0])
        try:
            reader, writer = await asyncio.open_connection(sock=client)
        except OSError as e:
            self._logger.warning("Could not set up connection from %s: %s", peer[0], e)
            client.close()
            return

        try:
            request = await self._read_request(reader)
            if not request:
                self._logger.debug("Empty request from %s, closing", peer[0])
                return
            writer.write(self._handler.handle(request))
            await writer.drain()
        except (OSError, asyncio.TimeoutError) as e:
            self._logger.debug("Connection from %s dropped: %s", peer[0], e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _read_request(self, reader: asyncio.StreamReader) -> bytes:
        read = read_request_line(reader, self._config.buffer_size)
        if self._config.read_timeout is None:
            return await read
        return await asyncio.wait_for(read, self._config.read_timeout)
