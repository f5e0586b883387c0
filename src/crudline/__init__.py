"""crudline -- Minimal loopback command server for CRUD-style clients.

A single background listener accepts one connection at a time, reads
one text command (CREATE, DELETE, MARK_READ, SHAKE), and replies with a
one-line status before closing the connection.
"""

__version__ = "0.1.0"
