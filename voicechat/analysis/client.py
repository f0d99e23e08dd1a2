"""Client for the remote transcription/emotion/response analysis service."""

import json
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..errors import AnalysisHttpError, ResponseValidationError
from ..models.chat import AnalysisResult

logger = logging.getLogger(__name__)

WAV_MIME_TYPE = "audio/wav"
UPLOAD_FIELD = "file"
UPLOAD_FILENAME = "recording.wav"


class AnalysisClient:
    """Submits WAV audio to the analysis endpoint and validates the answer."""

    def __init__(self, url: str, auth_token: Optional[str]):
        """Initialize the analysis client.

        Args:
            url: Full URL of the analysis endpoint
            auth_token: Bearer token sent in the Authorization header

        Raises:
            ValueError: If no token is given
        """
        if not auth_token:
            raise ValueError(
                "No auth token configured for the analysis service; "
                "set service.auth_token or VOICECHAT_AUTH_TOKEN")

        self.url = url
        self.auth_token = auth_token
        self._session: Optional[aiohttp.ClientSession] = None
        logger.info(f"AnalysisClient initialized for: {url}")

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        # One session for the client's lifetime so its cookie jar carries
        # same-origin cookies between requests. Requests run until the server
        # answers or the connection fails.
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                timeout=aiohttp.ClientTimeout(total=None),
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def analyze(self, wav_bytes: bytes, filename: str = UPLOAD_FILENAME) -> AnalysisResult:
        """Send a WAV buffer for analysis.

        Args:
            wav_bytes: Complete WAV file contents
            filename: Filename reported in the multipart form

        Returns:
            Validated analysis result

        Raises:
            AnalysisHttpError: On a non-2xx response
            ResponseValidationError: If the body is not JSON or lacks a required field
            aiohttp.ClientError: On transport failures
        """
        form = aiohttp.FormData()
        form.add_field(UPLOAD_FIELD, wav_bytes, filename=filename, content_type=WAV_MIME_TYPE)

        headers = {"Authorization": f"Bearer {self.auth_token}"}

        logger.info(f"Sending audio to backend, size: {len(wav_bytes)}")
        session = self._get_session()
        async with session.post(self.url, data=form, headers=headers) as response:
            logger.info(f"Response status: {response.status}")
            if not 200 <= response.status < 300:
                error_text = await response.text()
                logger.error(f"Server error: {error_text}")
                raise AnalysisHttpError(response.status, response.reason or "", error_text)

            body = await response.text()

        return parse_analysis_response(body)


def parse_analysis_response(body: str) -> AnalysisResult:
    """Validate the JSON body of a successful analysis response."""
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        logger.error(f"Response is not JSON: {e}")
        raise ResponseValidationError() from e

    try:
        result = AnalysisResult.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Invalid response format from server: {e}")
        raise ResponseValidationError() from e

    logger.debug(f"Server response: emotion={result.emotion!r}, transcription={result.transcription[:50]!r}")
    return result
