"""Tests for the built-in squelch and help commands."""

import pytest

from intentwire.commands import CoreCommandHandler
from intentwire.commands.core import DM_SQUELCH_NOTICE
from intentwire.engine import DispatchOutcome
from intentwire.messages import (
    COMMAND_BUT_SILENCED,
    NOT_SQUELCHED,
    SQUELCH_STATUS,
    SQUELCHED,
    UNSQUELCHED,
)

from .conftest import RecordingRoute


@pytest.fixture
def core_engine(engine):
    CoreCommandHandler(engine).register()
    return engine


def test_shut_up_squelches_room(core_engine, room):
    core_engine.handle_message(room, "bot: shut up")
    assert core_engine.is_squelched("general")
    assert room.sent == [(False, SQUELCHED, (10,))]


def test_core_commands_work_while_squelched(core_engine, room):
    core_engine.squelch("general")
    scope = core_engine.handle_message(room, "bot: wake up")
    assert scope.outcome is DispatchOutcome.COMMAND
    assert not core_engine.is_squelched("general")
    assert room.texts == [UNSQUELCHED]


def test_help_is_not_core(core_engine, room):
    core_engine.squelch("general")
    core_engine.handle_message(room, "bot: help")
    assert room.texts == [COMMAND_BUT_SILENCED]


def test_help_lists_command_names(core_engine, dm):
    core_engine.handle_message(dm, "help")
    assert "squelch status" in dm.texts[0]


def test_status_wins_over_squelch_by_length(core_engine, room, clock):
    core_engine.squelch("general")
    clock.advance(4 * 60 + 30)
    core_engine.handle_message(room, "bot: squelch status")
    # Still squelched: status did not re-squelch
    assert room.sent == [(False, SQUELCH_STATUS, (6,))]


def test_status_for_named_conversation_from_dm(core_engine, dm):
    core_engine.squelch("general")
    core_engine.handle_message(dm, "squelch status general")
    assert dm.sent == [(False, SQUELCH_STATUS, (10,))]


def test_status_when_not_squelched(core_engine, room):
    core_engine.handle_message(room, "bot: squelch status")
    assert room.texts == [NOT_SQUELCHED]


def test_squelch_in_dm_is_refused(core_engine, dm):
    core_engine.handle_message(dm, "squelch")
    assert dm.texts == [DM_SQUELCH_NOTICE]


def test_triggers_are_case_insensitive(core_engine):
    route = RecordingRoute("ops")
    core_engine.handle_message(route, "bot: Be Quiet")
    assert core_engine.is_squelched("ops")
