"""Terminal rendering of the conversation using rich."""

import logging
from typing import Optional, Sequence

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..audio.audio_pub import AUDIO_TOPIC
from ..models.chat import ChatHistory, ChatMessage
from ..models.events import AudioEvent, SessionEvent, SessionEventType
from ..services.conversation_service import CONVERSATION_TOPIC

logger = logging.getLogger(__name__)


class ChatScreen:
    """Prints messages, histories and errors as conversation events arrive."""

    def __init__(
        self,
        console: Optional[Console] = None,
        audio_topic: str = AUDIO_TOPIC,
        conversation_topic: str = CONVERSATION_TOPIC,
    ):
        self.console = console or Console()
        self.audio_topic = audio_topic
        self.conversation_topic = conversation_topic
        self.chunks_captured = 0
        self.seconds_captured = 0.0

        pub.subscribe(self.on_audio_event, audio_topic)
        pub.subscribe(self.on_session_event, conversation_topic)

    def close(self) -> None:
        pub.unsubscribe(self.on_audio_event, self.audio_topic)
        pub.unsubscribe(self.on_session_event, self.conversation_topic)

    def on_audio_event(self, event: AudioEvent) -> None:
        self.chunks_captured += 1
        self.seconds_captured += (event.chunk_duration_ms or 0) / 1000.0

    def on_session_event(self, event: SessionEvent) -> None:
        kind = event.event_type
        if kind is SessionEventType.RECORDING_STARTED:
            self.chunks_captured = 0
            self.seconds_captured = 0.0
            self.console.print("🔴 Recording... enter [bold]r[/bold] again to stop", style="bold red")
        elif kind is SessionEventType.PROCESSING:
            if self.chunks_captured:
                self.console.print(f"Captured {self.chunks_captured} chunks "
                                   f"(~{self.seconds_captured:.1f}s)", style="dim")
            self.console.print("⏳ Processing your audio...", style="blue")
        elif kind is SessionEventType.MESSAGE_APPENDED:
            self.render_message(event.metadata["message"])
        elif kind is SessionEventType.CHAT_STARTED:
            self.console.print("✨ New chat", style="bold green")
        elif kind is SessionEventType.ERROR:
            self.show_error(event.metadata.get("message", "Unknown error"))

    def show_welcome(self) -> None:
        self.console.print("🎙️  voicechat", style="bold blue")
        self.console.print("Record with the microphone or attach a WAV file.")
        self.show_commands()

    def show_commands(self) -> None:
        self.console.print("=" * 50)
        self.console.print("Commands:")
        self.console.print("  [bold green]r[/bold green] - Start / stop recording")
        self.console.print("  [bold green]u <file>[/bold green] - Upload a WAV file")
        self.console.print("  [bold blue]n[/bold blue] - New chat")
        self.console.print("  [bold blue]h[/bold blue] - Previous chats")
        self.console.print("  [bold blue]s <n>[/bold blue] - Switch to chat n")
        self.console.print("  [bold red]q[/bold red] - Quit")
        self.console.print("=" * 50)

    def show_error(self, message: str) -> None:
        self.console.print(Panel(Text(message), title="Connection Error", border_style="red"))

    def render_message(self, message: ChatMessage) -> None:
        time_str = message.timestamp.strftime("%H:%M")
        self.console.print(Panel(
            Text(message.transcription),
            title=f"You · {time_str}",
            title_align="right",
            border_style="red",
        ))
        body = Text()
        body.append("EMOTION DETECTED\n", style="dim")
        body.append(message.emotion.capitalize() + "\n\n")
        body.append("RESPONSE\n", style="dim")
        body.append(message.gemini_response)
        self.console.print(Panel(body, title="Assistant", title_align="left"))

    def render_conversation(self, messages: Sequence[ChatMessage]) -> None:
        if not messages:
            self.console.print('"If it works, don\'t touch it"  - Unknown Engineer', style="italic dim")
            return
        for message in messages:
            self.render_message(message)

    def render_histories(self, histories: Sequence[ChatHistory], current_chat_id: Optional[str]) -> None:
        if not histories:
            self.console.print("No previous chats", style="dim")
            return
        table = Table(title="Previous Chats")
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("Date")
        table.add_column("Messages", justify="right")
        for index, history in enumerate(histories, start=1):
            style = "bold" if history.id == current_chat_id else None
            table.add_row(str(index), history.title, history.date.isoformat(),
                          str(len(history.messages)), style=style)
        self.console.print(table)
