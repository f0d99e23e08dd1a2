"""Main application entry point for voicechat."""

import sys
import asyncio
import argparse
import logging
from functools import partial
from pathlib import Path
from typing import Optional

from voicechat.analysis.client import AnalysisClient
from voicechat.audio.audio_pub import AudioPublisher
from voicechat.audio.capture import AudioCaptureController
from voicechat.audio.device import MicrophoneDevice
from voicechat.audio.wav_encoder import WavLayout
from voicechat.services.conversation_service import ConversationService
from voicechat.services.session_store import SessionStore
from voicechat.ui.chat_screen import ChatScreen

from .config import VoiceChatConfig

logger = logging.getLogger(__name__)


class App:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = VoiceChatConfig(config_path)
        # Command line level wins over the config file
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))

    def init(self):
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate')
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        wav_layout = WavLayout(self.config.get('audio.wav_layout', 'pcm'))

        logger.info(f"Audio settings: {sample_rate or 'device default'}Hz, {chunk_size} samples/chunk, "
                    f"{channels} channels, WAV layout {wav_layout.value}")

        self.capture = AudioCaptureController(
            device_factory=partial(MicrophoneDevice, sample_rate=sample_rate,
                                   channels=channels, chunk_size=chunk_size),
            publisher=AudioPublisher(),
        )
        self.client = AnalysisClient(self.config.get_service_url(), self.config.get_auth_token())
        self.store = SessionStore()
        self.service = ConversationService(self.capture, self.client, self.store, wav_layout)
        self.screen = ChatScreen()

    async def run_interactive(self) -> None:
        self.screen.show_welcome()
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            command, _, argument = line.strip().partition(" ")
            argument = argument.strip()

            if command == "q":
                break
            elif command == "r":
                await self.service.toggle_recording()
            elif command == "u":
                if not argument:
                    self.screen.show_error("Usage: u <file.wav>")
                    continue
                await self.service.submit_file(Path(argument).expanduser())
            elif command == "n":
                self.service.start_new_chat()
            elif command == "h":
                self.screen.render_histories(self.store.histories, self.store.current_chat_id)
            elif command == "s":
                self._switch(argument)
            elif command:
                self.screen.show_commands()

    def _switch(self, argument: str) -> None:
        histories = self.store.histories
        if not argument.isdigit() or not 1 <= int(argument) <= len(histories):
            self.screen.show_error(f"Choose a chat between 1 and {len(histories)}")
            return
        if self.service.switch_to_chat(histories[int(argument) - 1].id):
            self.screen.render_conversation(self.store.active_messages)

    async def run_auto(self, duration: int) -> bool:
        """Record for ``duration`` seconds and submit; True on success."""
        if not await self.service.start_recording():
            return False
        await asyncio.sleep(duration)
        return await self.service.stop_recording() is not None

    async def run_upload(self, path: str) -> bool:
        return await self.service.submit_file(Path(path).expanduser()) is not None

    async def cleanup(self) -> None:
        await self.capture.abort()
        await self.client.close()
        self.screen.close()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/voicechat.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # The screen already shows user-facing errors
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("voicechat application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


async def _run(app: App, args: argparse.Namespace) -> int:
    app.init()
    try:
        if args.upload:
            ok = await app.run_upload(args.upload)
        elif args.duration:
            ok = await app.run_auto(args.duration)
        else:
            await app.run_interactive()
            ok = True
    finally:
        await app.cleanup()
    return 0 if ok else 1


def main() -> None:
    """Main entry point for voicechat application."""
    parser = argparse.ArgumentParser(
        description="voicechat - talk to the analysis service by voice or WAV upload",
        epilog="Commands: r=Record/stop, u <file>=Upload, n=New chat, h=History, s <n>=Switch, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--upload",
        type=str,
        metavar="FILE",
        help="Submit a WAV file, print the answer and exit"
    )
    mode.add_argument(
        "--duration",
        type=int,
        help="Record for this many seconds, submit the recording and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="voicechat v0.1.0"
    )

    args = parser.parse_args()

    try:
        app = App(args.config, args.log_level)
        sys.exit(asyncio.run(_run(app, args)))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
