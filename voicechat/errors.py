"""Error taxonomy shared by the capture pipeline, the analysis client and the services."""


class VoiceChatError(Exception):
    """Base class for every error surfaced to the user."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)


class MicrophonePermissionError(VoiceChatError, PermissionError):
    """Microphone access was denied or no input device is available."""

    user_message = "Failed to start recording. Please check your microphone permissions."


class InvalidTransitionError(VoiceChatError):
    """A capture operation was requested from a state that does not allow it."""

    user_message = "A recording is already in progress."


class CaptureError(VoiceChatError):
    """Recording stopped without producing any audio."""

    user_message = "Failed to capture audio. Please try again."


class DecodeError(VoiceChatError):
    """Captured audio could not be converted to PCM samples."""

    user_message = "Failed to decode captured audio."


class AnalysisHttpError(VoiceChatError):
    """The analysis service answered with a non-2xx status."""

    def __init__(self, status: int, reason: str = "", body: str = ""):
        self.status = status
        self.reason = reason or ""
        self.body = body
        super().__init__(f"Failed to process audio: {status} {self.reason}".rstrip())


class ResponseValidationError(VoiceChatError):
    """The analysis service response is missing required fields."""

    user_message = "Invalid response format from server"


class FileTypeError(VoiceChatError):
    """An uploaded file is not a WAV file."""

    user_message = "Please upload a WAV file only."


class BusyError(VoiceChatError):
    """A submission was requested while another one is still in flight."""

    user_message = "Still processing the previous audio. Please wait."


class ChatNotFoundError(VoiceChatError, KeyError):
    """No chat history exists with the requested identifier."""

    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat not found: {chat_id}")

    def __str__(self) -> str:
        return self.args[0]
