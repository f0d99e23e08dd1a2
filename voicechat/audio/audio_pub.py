"""Broadcast of captured microphone chunks to pubsub listeners."""

import logging
import time
from typing import Optional

from pubsub import pub

from ..models.events import AudioEvent

logger = logging.getLogger(__name__)

AUDIO_TOPIC = "audio.chunk"


class AudioPublisher:
    """Turns raw chunks of a recording session into AudioEvents on a topic.

    Listeners only observe the recording. A listener that raises is logged
    and counted in ``delivery_errors``; capture carries on regardless.
    """

    def __init__(self, topic: str = AUDIO_TOPIC):
        self.topic = topic
        self.delivery_errors = 0

    def publish_chunk(
        self,
        data: bytes,
        sequence_number: int,
        sample_rate: Optional[int],
        channels: int,
    ) -> AudioEvent:
        """Publish one chunk of the current recording.

        Args:
            data: Raw int16 bytes as delivered by the device
            sequence_number: 1-based position of the chunk in its session
            sample_rate: Session sample rate in Hz
            channels: Session channel count

        Returns:
            The event that was sent
        """
        event = AudioEvent(
            chunk_id=f"chunk_{sequence_number}",
            audio_data=data,
            timestamp=time.time(),
            sequence_number=sequence_number,
            sample_rate=sample_rate,
            channels=channels,
        )
        try:
            pub.sendMessage(self.topic, event=event)
        except Exception:
            self.delivery_errors += 1
            if self.delivery_errors == 1:
                logger.exception(f"Audio listener failed on {event.chunk_id}")
            else:
                logger.debug(f"Audio listener failed on {event.chunk_id}")
        return event
