"""Line-protocol client for the crudline server.

Each call opens a fresh connection, sends one command line, reads the
one-line response, and closes, matching the server's one command per
connection contract.
"""

from __future__ import annotations

import asyncio
import logging

from crudline.config.settings import DEFAULT_HOST, DEFAULT_PORT
from crudline.domain.models import CommandType

logger = logging.getLogger(__name__)


class CommandClientError(Exception):
    """Raised when a command cannot be delivered or answered."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command


def _sanitize(field: str) -> str:
    """Keep payload fields from breaking the line framing."""
    return field.replace("|", " ").replace("\r", " ").replace("\n", " ")


class CommandClient:
    """Sends commands to the local command server.

    Example usage::

        client = CommandClient(port=5555)
        await client.create("42", "Hello", "First message")   # "OK|CREATE"
        await client.shake()                                  # "OK|SHAKE"
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = 5.0,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout

    async def send(self, line: str) -> str:
        """Send one raw command line and return the response without its newline."""
        command = line.split("|", 1)[0]
        try:
            return await asyncio.wait_for(self._exchange(line), self._timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise CommandClientError(
                f"Error sending {command} to {self._host}:{self._port}: {e}", command=command
            ) from e

    async def _exchange(self, line: str) -> str:
        reader, writer = await asyncio.open_connection(self._host, self._port)
        try:
            writer.write(f"{line}\n".encode("utf-8"))
            await writer.drain()
            response = await reader.readline()
        finally:
            writer.close()
            await writer.wait_closed()
        text = response.decode("utf-8", errors="replace").rstrip("\r\n")
        logger.debug("Response for %s: %s", line.split("|", 1)[0], text)
        return text

    async def create(self, notification_id: str, title: str, message: str) -> str:
        """Send CREATE|id|title|message."""
        payload = "|".join(
            [CommandType.CREATE.value, _sanitize(notification_id), _sanitize(title), _sanitize(message)]
        )
        return await self.send(payload)

    async def delete(self, notification_id: str) -> str:
        """Send DELETE|id."""
        return await self.send(f"{CommandType.DELETE.value}|{_sanitize(notification_id)}")

    async def mark_read(self, notification_id: str) -> str:
        """Send MARK_READ|id."""
        return await self.send(f"{CommandType.MARK_READ.value}|{_sanitize(notification_id)}")

    async def shake(self) -> str:
        """Send SHAKE (mark everything as read)."""
        return await self.send(CommandType.SHAKE.value)
