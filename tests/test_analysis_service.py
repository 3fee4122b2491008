"""
Tests for the OpenAI lyrics analysis service.
"""

import json
from unittest.mock import Mock

import httpx
import openai
import pytest

from lyrics_anki_generator.analysis.openai_service import OpenAIAnalysisService
from lyrics_anki_generator.analysis.prompts import build_user_prompt
from lyrics_anki_generator.errors import AnalysisError, AnalysisParseError


REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def completion(content):
    message = Mock()
    message.content = content
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


def make_service(client, max_attempts=3):
    return OpenAIAnalysisService(client=client, model="gpt-test",
                                 max_attempts=max_attempts, wait_multiplier=0)


class TestOpenAIAnalysisService:
    """Test analysis requests, retries and response validation."""

    def test_analyze_parses_response(self, analysis_payload):
        client = Mock()
        client.chat.completions.create.return_value = completion(json.dumps(analysis_payload))

        analysis = make_service(client).analyze("Bella Ciao", "Una mattina mi son svegliato")

        assert analysis.song_title == "Bella Ciao"
        assert analysis.language_code == "it-IT"
        assert len(analysis.lines) == 2
        assert analysis.lines[1].translation == "oh goodbye beautiful"
        assert all(line.audio_ref is None for line in analysis.lines)

    def test_request_uses_json_mode(self, analysis_payload):
        client = Mock()
        client.chat.completions.create.return_value = completion(json.dumps(analysis_payload))

        make_service(client).analyze("Bella Ciao", "o bella ciao")

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs['model'] == "gpt-test"
        assert kwargs['temperature'] == 0
        assert kwargs['response_format'] == {'type': 'json_object'}
        assert kwargs['messages'][0]['role'] == 'system'
        assert kwargs['messages'][1]['content'] == build_user_prompt("Bella Ciao", "o bella ciao")

    def test_prompt_contains_title_and_lyrics(self):
        prompt = build_user_prompt("Bella Ciao", "o bella ciao\nciao ciao")
        assert "Song name: Bella Ciao" in prompt
        assert "o bella ciao\nciao ciao" in prompt

    def test_retries_transient_errors(self, analysis_payload):
        client = Mock()
        client.chat.completions.create.side_effect = [
            openai.APIConnectionError(request=REQUEST),
            completion(json.dumps(analysis_payload)),
        ]

        analysis = make_service(client).analyze("Bella Ciao", "o bella ciao")

        assert analysis.song_title == "Bella Ciao"
        assert client.chat.completions.create.call_count == 2

    def test_gives_up_after_max_attempts(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.APITimeoutError(request=REQUEST)

        with pytest.raises(AnalysisError) as exc_info:
            make_service(client, max_attempts=2).analyze("Bella Ciao", "o bella ciao")

        assert client.chat.completions.create.call_count == 2
        assert str(exc_info.value) == "Failed to analyze lyrics."
        assert exc_info.value.processing_error.error_code == "ANALYSIS_001"

    def test_authentication_error_is_not_retried(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.AuthenticationError(
            "Incorrect API key provided",
            response=httpx.Response(401, request=REQUEST),
            body=None
        )

        with pytest.raises(AnalysisError) as exc_info:
            make_service(client).analyze("Bella Ciao", "o bella ciao")

        assert client.chat.completions.create.call_count == 1
        assert exc_info.value.processing_error.error_code == "ANALYSIS_002"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(AnalysisError) as exc_info:
            OpenAIAnalysisService()

        assert exc_info.value.processing_error.error_code == "ANALYSIS_002"

    def test_empty_response(self):
        client = Mock()
        client.chat.completions.create.return_value = completion(None)

        with pytest.raises(AnalysisError) as exc_info:
            make_service(client).analyze("Bella Ciao", "o bella ciao")
        assert not isinstance(exc_info.value, AnalysisParseError)

    def test_invalid_json(self):
        client = Mock()
        client.chat.completions.create.return_value = completion("not json {")

        with pytest.raises(AnalysisParseError):
            make_service(client).analyze("Bella Ciao", "o bella ciao")

    def test_schema_violation(self, analysis_payload):
        del analysis_payload['lyrics'][0]['ipa']
        client = Mock()
        client.chat.completions.create.return_value = completion(json.dumps(analysis_payload))

        with pytest.raises(AnalysisParseError) as exc_info:
            make_service(client).analyze("Bella Ciao", "o bella ciao")
        assert "ipa" in exc_info.value.processing_error.details
