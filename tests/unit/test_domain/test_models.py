"""Tests for the core domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from crudline.domain.models import Command, CommandType, ServerState


class TestCommandType:
    def test_values_match_wire_names(self) -> None:
        assert [t.value for t in CommandType] == [
            "CREATE", "DELETE", "MARK_READ", "SHAKE", "UNKNOWN",
        ]

    def test_is_str_enum(self) -> None:
        assert CommandType.CREATE == "CREATE"


class TestCommand:
    def test_known_command(self) -> None:
        cmd = Command(type=CommandType.DELETE, argument="7", raw="DELETE|7")
        assert cmd.is_known
        assert cmd.argument == "7"

    def test_unknown_command(self) -> None:
        cmd = Command(type=CommandType.UNKNOWN, argument="PING", raw="PING")
        assert not cmd.is_known

    def test_shake_defaults_to_no_argument(self) -> None:
        cmd = Command(type=CommandType.SHAKE, raw="SHAKE")
        assert cmd.argument is None

    def test_frozen(self) -> None:
        cmd = Command(type=CommandType.SHAKE, raw="SHAKE")
        with pytest.raises(ValidationError):
            cmd.type = CommandType.CREATE  # type: ignore[misc]

    def test_rejects_bad_type(self) -> None:
        with pytest.raises(ValidationError):
            Command(type="PING", raw="PING")  # type: ignore[arg-type]


class TestServerState:
    def test_starts_false(self) -> None:
        assert ServerState().started is False

    def test_mutable(self) -> None:
        state = ServerState()
        state.started = True
        assert state.started is True
