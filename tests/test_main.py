from chat_overlay.chat.models import ChatMessage, MessageType
from chat_overlay.main import format_message, parse_console_line


def test_parse_message():
    event = parse_console_line("ann: hey all\n")
    assert event.type is MessageType.NORMAL
    assert event.sender == "ann"
    assert event.body == "hey all"


def test_parse_action():
    event = parse_console_line("* ann waves hello")
    assert event.type is MessageType.ACTION
    assert event.sender == "ann"
    assert event.body == "waves hello"


def test_parse_rejects_junk():
    assert parse_console_line("") is None
    assert parse_console_line("   ") is None
    assert parse_console_line("no colon here") is None
    assert parse_console_line("two words: body") is None
    assert parse_console_line(": body") is None


def test_format_message():
    msg = ChatMessage(type=MessageType.NORMAL, display_username="Ann", body="hi", post_count=3)
    assert format_message(msg) == "[3] Ann: hi"


def test_format_action():
    msg = ChatMessage(type=MessageType.ACTION, display_username="Ann", body="waves", post_count=1)
    assert format_message(msg) == "[1] * Ann waves"
