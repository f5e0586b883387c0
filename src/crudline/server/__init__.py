"""Loopback TCP command server for crudline.

Accepts one connection at a time on a loopback port, reads a single
command line, and answers with a one-line status before closing the
connection.

Public API:
    start_server -- Process-wide, start-once entry point
    ServerLifecycle -- Start-once guard around a ListenerLoop
    ListenerLoop -- Serial accept loop owning the socket
    RequestHandler -- Parses a request line and builds the response
"""

from crudline.server.lifecycle import ServerLifecycle, start_server
from crudline.server.listener import ListenerLoop, ServerSetupError
from crudline.server.protocol import RequestHandler, dispatch

__all__ = [
    "ListenerLoop",
    "RequestHandler",
    "ServerLifecycle",
    "ServerSetupError",
    "dispatch",
    "start_server",
]
