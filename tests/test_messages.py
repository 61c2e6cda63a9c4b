"""Tests for the phrasebook and console route."""

import io

from intentwire.messages import COMMAND_BUT_SILENCED, COMMAND_NOT_FOUND, Phrasebook
from intentwire.route import ConsoleRoute


def test_known_key_rendered_with_args():
    book = Phrasebook()
    assert "general" in book.render(COMMAND_BUT_SILENCED, "general")


def test_literal_text_passed_through():
    assert Phrasebook().render("plain {0} text", "x") == "plain {0} text"


def test_unknown_key_returned_verbatim():
    assert Phrasebook().render("?nope") == "?nope"


def test_missing_args_leave_template():
    book = Phrasebook({"?hi": "hello {0}"})
    assert book.render("?hi") == "hello {0}"


def test_overrides_replace_defaults():
    book = Phrasebook({COMMAND_NOT_FOUND: "Huh?"})
    assert book.render(COMMAND_NOT_FOUND) == "Huh?"


def test_console_route_writes_rendered_reply():
    out = io.StringIO()
    route = ConsoleRoute("alice", "general", Phrasebook({"?hi": "hi {0}"}), stream=out)
    route.send("?hi", "there")
    assert out.getvalue() == "[#general] hi there\n"


def test_console_route_direct_is_private():
    out = io.StringIO()
    route = ConsoleRoute("alice", "general", Phrasebook(), stream=out).direct()
    assert route.conversation_id is None
    route.send("psst")
    assert out.getvalue() == "[@alice] psst\n"
