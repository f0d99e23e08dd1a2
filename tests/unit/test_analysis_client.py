"""Unit tests for AnalysisClient against a local aiohttp server."""

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp import test_utils

from voicechat.analysis.client import AnalysisClient, parse_analysis_response
from voicechat.errors import AnalysisHttpError, ResponseValidationError

VALID_RESPONSE = {
    "transcription": "I finally finished the project",
    "emotion": "joy",
    "gemini_response": "Congratulations, that's a big milestone!",
}
WAV_BYTES = b"RIFF" + bytes(40) + b"\x01\x00\x02\x00"


async def serve(handler, scenario, token="test-token"):
    """Run ``scenario(client)`` against a server answering with ``handler``."""
    app = web.Application()
    app.router.add_post("/api/analyze_audio", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        async with AnalysisClient(str(server.make_url("/api/analyze_audio")), token) as client:
            return await scenario(client)
    finally:
        await server.close()


@pytest.mark.unit
class TestAnalysisClient:
    """Test cases for AnalysisClient."""

    def test_successful_analysis(self):
        seen = {}

        async def handler(request):
            seen["authorization"] = request.headers.get("Authorization")
            form = await request.post()
            upload = form["file"]
            seen["filename"] = upload.filename
            seen["content_type"] = upload.content_type
            seen["body"] = upload.file.read()
            seen["fields"] = list(form.keys())
            return web.json_response(VALID_RESPONSE)

        result = asyncio.run(serve(handler, lambda client: client.analyze(WAV_BYTES)))

        assert result.transcription == VALID_RESPONSE["transcription"]
        assert result.emotion == "joy"
        assert result.gemini_response == VALID_RESPONSE["gemini_response"]
        assert seen["authorization"] == "Bearer test-token"
        assert seen["filename"] == "recording.wav"
        assert seen["content_type"] == "audio/wav"
        assert seen["body"] == WAV_BYTES
        assert seen["fields"] == ["file"]

    def test_bearer_header_sent_on_every_request(self):
        seen = []

        async def handler(request):
            seen.append(request.headers.get("Authorization"))
            return web.json_response(VALID_RESPONSE)

        async def scenario(client):
            await client.analyze(WAV_BYTES)
            await client.analyze(WAV_BYTES)

        asyncio.run(serve(handler, scenario, token="static-token"))

        assert seen == ["Bearer static-token", "Bearer static-token"]

    def test_http_error_carries_status_and_body(self):
        async def handler(request):
            return web.Response(status=500, text="model overloaded")

        with pytest.raises(AnalysisHttpError) as exc_info:
            asyncio.run(serve(handler, lambda client: client.analyze(WAV_BYTES)))

        error = exc_info.value
        assert error.status == 500
        assert error.reason == "Internal Server Error"
        assert error.body == "model overloaded"
        assert str(error) == "Failed to process audio: 500 Internal Server Error"

    def test_missing_field_is_a_validation_error(self):
        async def handler(request):
            return web.json_response({"transcription": "hi", "emotion": "calm"})

        with pytest.raises(ResponseValidationError):
            asyncio.run(serve(handler, lambda client: client.analyze(WAV_BYTES)))

    def test_non_json_body_is_a_validation_error(self):
        async def handler(request):
            return web.Response(text="<html>gateway</html>", content_type="text/html")

        with pytest.raises(ResponseValidationError):
            asyncio.run(serve(handler, lambda client: client.analyze(WAV_BYTES)))

    def test_cookies_are_kept_between_requests(self):
        cookies = []

        async def handler(request):
            cookies.append(request.cookies.get("session"))
            response = web.json_response(VALID_RESPONSE)
            response.set_cookie("session", "abc123")
            return response

        async def scenario(client):
            await client.analyze(WAV_BYTES)
            await client.analyze(WAV_BYTES)

        asyncio.run(serve(handler, scenario))

        assert cookies == [None, "abc123"]


@pytest.mark.unit
class TestParseAnalysisResponse:
    """Test cases for response validation."""

    def test_extra_fields_are_ignored(self):
        body = json.dumps(dict(VALID_RESPONSE, confidence=0.9))

        result = parse_analysis_response(body)

        assert result.emotion == "joy"
        assert not hasattr(result, "confidence")

    @pytest.mark.parametrize("field", ["transcription", "emotion", "gemini_response"])
    def test_each_field_is_required(self, field):
        payload = dict(VALID_RESPONSE)
        del payload[field]

        with pytest.raises(ResponseValidationError):
            parse_analysis_response(json.dumps(payload))

    def test_empty_field_is_rejected(self):
        with pytest.raises(ResponseValidationError):
            parse_analysis_response(json.dumps(dict(VALID_RESPONSE, emotion="")))

    def test_non_object_is_rejected(self):
        with pytest.raises(ResponseValidationError):
            parse_analysis_response(json.dumps(["transcription"]))

    def test_error_message_is_user_facing(self):
        with pytest.raises(ResponseValidationError) as exc_info:
            parse_analysis_response("{}")

        assert str(exc_info.value) == "Invalid response format from server"


@pytest.mark.unit
class TestAnalysisClientSetup:
    """Construction and session settings of AnalysisClient."""

    def test_missing_token_is_rejected(self):
        with pytest.raises(ValueError, match="VOICECHAT_AUTH_TOKEN"):
            AnalysisClient("http://localhost/api/analyze_audio", None)
        with pytest.raises(ValueError):
            AnalysisClient("http://localhost/api/analyze_audio", "")

    def test_session_has_no_total_timeout(self):
        async def scenario():
            async with AnalysisClient("http://localhost/api/analyze_audio", "t") as client:
                return client._get_session().timeout

        timeout = asyncio.run(scenario())
        assert timeout.total is None
