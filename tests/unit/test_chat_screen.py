"""Unit tests for the rich terminal screen."""

import io
from datetime import date, datetime

import pytest
from pubsub import pub
from rich.console import Console

from voicechat.models.chat import ChatHistory, ChatMessage
from voicechat.models.events import AudioEvent, SessionEvent, SessionEventType
from voicechat.ui.chat_screen import ChatScreen


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def screen(output, topic):
    console = Console(file=output, width=100, color_system=None)
    screen = ChatScreen(console, audio_topic=topic + "_audio", conversation_topic=topic)
    yield screen
    screen.close()


def make_message(text="Good morning"):
    return ChatMessage("m1", text, "cheerful", "Morning! Ready for the day?", datetime(2024, 5, 17, 9, 5))


@pytest.mark.unit
class TestChatScreen:
    """Test cases for ChatScreen."""

    def test_appended_message_is_rendered(self, screen, output, topic):
        event = SessionEvent(SessionEventType.MESSAGE_APPENDED, metadata={"message": make_message()})
        pub.sendMessage(topic, event=event)

        text = output.getvalue()
        assert "Good morning" in text
        assert "Cheerful" in text
        assert "Morning! Ready for the day?" in text
        assert "09:05" in text

    def test_error_is_rendered(self, screen, output, topic):
        pub.sendMessage(topic, event=SessionEvent(SessionEventType.ERROR, metadata={"message": "Please upload a WAV file only."}))

        assert "Please upload a WAV file only." in output.getvalue()

    def test_audio_chunks_are_counted(self, screen, topic):
        chunk = AudioEvent("chunk_1", b"\x00" * 3200, 0.0, 1, sample_rate=16000)
        pub.sendMessage(topic + "_audio", event=chunk)
        pub.sendMessage(topic + "_audio", event=chunk)

        assert screen.chunks_captured == 2
        assert screen.seconds_captured == pytest.approx(0.2)

    def test_histories_table(self, screen, output):
        history = ChatHistory("h1", "Good morning...", date(2024, 5, 17), (make_message(),))
        screen.render_histories([history], current_chat_id="h1")

        text = output.getvalue()
        assert "Previous Chats" in text
        assert "Good morning..." in text
        assert "2024-05-17" in text

    def test_empty_conversation_placeholder(self, screen, output):
        screen.render_conversation([])

        assert "Unknown Engineer" in output.getvalue()
