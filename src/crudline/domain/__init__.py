"""Domain models for crudline.

Core data structures used throughout the system. All models use
Pydantic v2 for validation.
"""

from crudline.domain.models import Command, CommandType, ServerState

__all__ = [
    "Command",
    "CommandType",
    "ServerState",
]
