"""Core domain models for crudline.

A request line is parsed into a ``Command`` and consumed immediately by
dispatch. ``ServerState`` is the only long-lived state: the start-once
flag guarded by the lifecycle.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CommandType(str, enum.Enum):
    """Commands understood by the line protocol."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    MARK_READ = "MARK_READ"
    SHAKE = "SHAKE"  # Conceptually "mark all as read"; no state is kept
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# Protocol Models
# ---------------------------------------------------------------------------


class Command(BaseModel):
    """A single parsed request line.

    For CREATE/DELETE/MARK_READ ``argument`` is the opaque text after the
    first ``|``. SHAKE carries no argument. UNKNOWN carries the whole
    unrecognized line.
    """

    model_config = ConfigDict(frozen=True)

    type: CommandType = Field(description="Which command the line matched")
    argument: str | None = Field(default=None, description="Payload following the command")
    raw: str = Field(default="", description="The normalized request line")

    @property
    def is_known(self) -> bool:
        return self.type is not CommandType.UNKNOWN


# ---------------------------------------------------------------------------
# Server State
# ---------------------------------------------------------------------------


class ServerState(BaseModel):
    """Process-wide start-once flag.

    Goes from False to True exactly once per successful start. Only the
    lifecycle mutates it, and only while holding its lock.
    """

    started: bool = Field(default=False)
