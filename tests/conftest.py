"""
Pytest configuration and shared fixtures.

Provides sample analyses and in-memory stand-ins for the speech
synthesizer so tests never call remote services.
"""

import pytest
from hypothesis import settings, Verbosity
from typing import Dict, List

from lyrics_anki_generator.audio.synthesizer import SpeechSynthesizer
from lyrics_anki_generator.errors import (
    ErrorCategory, ErrorSeverity, ProcessingError, SynthesisError
)
from lyrics_anki_generator.models import LyricLine, LyricsAnalysis


settings.register_profile("lyrics",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("lyrics")


def pytest_configure(config):
    config.addinivalue_line("markers", "property: property-based tests using Hypothesis")


def make_line(text: str, audio_ref: str = None) -> LyricLine:
    """Create a lyric line with predictable analysis fields."""
    return LyricLine(
        text=text,
        ipa=f"/{text.lower()}/",
        translation=f"translation of {text}",
        literal_explanation=f"literally {text}",
        audio_ref=audio_ref
    )


def make_analysis(texts: List[str], title: str = "Test Song",
                  language_code: str = "en-US") -> LyricsAnalysis:
    """Create an analysis with one line per text."""
    return LyricsAnalysis(
        song_title=title,
        language_code=language_code,
        context_notes="A song used in tests",
        lines=[make_line(text) for text in texts]
    )


class FakeSynthesizer(SpeechSynthesizer):
    """Records calls and returns fake MP3 bytes, failing for chosen IPA strings."""

    def __init__(self, fail_ipa: List[str] = None):
        self.fail_ipa = fail_ipa or []
        self.calls: List[str] = []

    def synthesize(self, ipa: str, language_code: str) -> bytes:
        self.calls.append(ipa)
        if ipa in self.fail_ipa:
            raise SynthesisError(ProcessingError(
                category=ErrorCategory.AUDIO_SYNTHESIS,
                severity=ErrorSeverity.WARNING,
                message="No audio stream returned from Polly.",
                details=f"Forced failure for {ipa}",
                suggested_actions=[],
                error_code="SYNTH_004"
            ))
        return b"ID3" + ipa.encode("utf-8")


@pytest.fixture
def hello_world_analysis() -> LyricsAnalysis:
    """Analysis with lines Hello, a blank line, and World."""
    return make_analysis(["Hello", "", "World"])


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def analysis_payload() -> Dict:
    """Upstream JSON payload for a two-line song."""
    return {
        "songName": "Bella Ciao",
        "languageCode": "it-IT",
        "generalContextInformation": "Italian folk song of the resistance.",
        "lyrics": [
            {
                "line": "Una mattina mi son svegliato",
                "ipa": "ˈuna matˈtina mi son zveʎˈʎato",
                "translation": "One morning I woke up",
                "literalTranslationExplanation": "Una (one) mattina (morning) mi son svegliato (I woke up)"
            },
            {
                "line": "o bella ciao",
                "ipa": "o ˈbɛlla ˈtʃao",
                "translation": "oh goodbye beautiful",
                "literalTranslationExplanation": "o (oh) bella (beautiful) ciao (goodbye)"
            }
        ]
    }


@pytest.fixture
def analysis_factory():
    """Factory building analyses from a list of line texts."""
    return make_analysis


@pytest.fixture
def synthesizer_factory():
    """Factory building fake synthesizers that fail for the given IPA strings."""
    return FakeSynthesizer
