"""Line protocol parsing and dispatch.

One request line per connection, one response line back::

    CREATE|<payload>      -> OK|CREATE
    DELETE|<payload>      -> OK|DELETE
    MARK_READ|<payload>   -> OK|MARK_READ
    SHAKE                 -> OK|SHAKE
    anything else         -> ERROR|UNKNOWN

Matching is case-sensitive prefix matching, first match wins. Only the
first line of a request is considered.
"""

from __future__ import annotations

import logging

from crudline.domain.models import Command, CommandType

logger = logging.getLogger(__name__)

ARGUMENT_DELIMITER = "|"
LINE_TERMINATOR = "\n"

# Ordered grammar: (prefix, command, whether the prefix includes the delimiter)
GRAMMAR: tuple[tuple[str, CommandType, bool], ...] = (
    ("CREATE|", CommandType.CREATE, True),
    ("DELETE|", CommandType.DELETE, True),
    ("MARK_READ|", CommandType.MARK_READ, True),
    ("SHAKE", CommandType.SHAKE, False),
)

UNKNOWN_RESPONSE = f"ERROR|{CommandType.UNKNOWN.value}{LINE_TERMINATOR}"


def normalize_line(data: bytes) -> str:
    """Decode request bytes and keep only the text before the first CR or LF."""
    text = data.decode("utf-8", errors="replace")
    for i, char in enumerate(text):
        if char in "\r\n":
            return text[:i]
    return text


def parse_command(line: str) -> Command:
    """Match a normalized line against the grammar."""
    for prefix, command_type, has_argument in GRAMMAR:
        if line.startswith(prefix):
            argument = line[len(prefix):] if has_argument else None
            return Command(type=command_type, argument=argument, raw=line)
    return Command(type=CommandType.UNKNOWN, argument=line, raw=line)


def format_response(command: Command) -> str:
    """Build the newline-terminated status line for a command."""
    if not command.is_known:
        return UNKNOWN_RESPONSE
    return f"OK|{command.type.value}{LINE_TERMINATOR}"


class RequestHandler:
    """Turns raw request bytes into a response line.

    Stateless apart from the injected logger; safe to share between
    listeners.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, raw: bytes) -> bytes:
        """Normalize, parse and answer one request."""
        line = normalize_line(raw)
        self._logger.info("Received: %s", line)
        command = parse_command(line)
        self._log_command(command)
        return format_response(command).encode("utf-8")

    def _log_command(self, command: Command) -> None:
        if command.type is CommandType.SHAKE:
            self._logger.info("Handled SHAKE: marking all as read")
        elif command.is_known:
            self._logger.info("Handled %s (argument=%r)", command.type.value, command.argument)
        else:
            self._logger.info("Unknown command: %r", command.raw)


_default_handler = RequestHandler(logger)


def dispatch(raw: bytes) -> bytes:
    """Answer one request using the module-level handler."""
    return _default_handler.handle(raw)
