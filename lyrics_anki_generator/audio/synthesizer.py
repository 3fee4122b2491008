"""
Text-to-speech synthesis of IPA transcriptions.

This module provides the speech synthesizer interface and an Amazon Polly
implementation that pronounces IPA through SSML phoneme tags.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from xml.sax.saxutils import quoteattr

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Config
from ..errors import (
    ErrorCategory,
    ErrorSeverity,
    ProcessingError,
    SynthesisError,
    error_handler,
)
from .voices import VoiceCache, VoiceResolver


logger = logging.getLogger(__name__)


class SpeechSynthesizer(ABC):
    """Base interface for speech synthesizers."""

    @abstractmethod
    def synthesize(self, ipa: str, language_code: str) -> bytes:
        """
        Synthesize speech for an IPA transcription.

        Args:
            ipa: IPA transcription to pronounce
            language_code: Language code such as 'en-US'

        Returns:
            Encoded audio bytes
        """
        pass


def build_ipa_ssml(ipa: str, rate: str = Config.SPEECH_RATE) -> str:
    """Wrap an IPA string in SSML asking for slow phoneme-mode pronunciation."""
    return (
        f'<speak><prosody rate={quoteattr(rate)}>'
        f'<phoneme alphabet="ipa" ph={quoteattr(ipa)}></phoneme>'
        f'</prosody></speak>'
    )


class PollySpeechSynthesizer(SpeechSynthesizer):
    """
    Speech synthesizer using Amazon Polly neural voices.

    Credentials come from the standard boto3 chain (AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY, shared config files or an instance role).
    """

    def __init__(self, polly_client: Optional[Any] = None,
                 voice_cache: Optional[VoiceCache] = None,
                 region_name: str = Config.AWS_REGION):
        """
        Initialize the synthesizer.

        Args:
            polly_client: Preconfigured Polly client; created from region_name if None
            voice_cache: Voice cache shared for the session
            region_name: AWS region for a newly created client
        """
        self.client = polly_client or boto3.client('polly', region_name=region_name)
        self.voice_resolver = VoiceResolver(self.client, voice_cache)

    def synthesize(self, ipa: str, language_code: str) -> bytes:
        """
        Synthesize an IPA transcription to MP3 audio.

        Raises:
            VoiceNotFoundError: If no voice exists for the language
            SynthesisError: If Polly fails or returns no audio
        """
        context = {'ipa': ipa, 'language_code': language_code}

        try:
            voice_id = self.voice_resolver.resolve(language_code)
            response = self.client.synthesize_speech(
                Text=build_ipa_ssml(ipa),
                TextType='ssml',
                OutputFormat=Config.POLLY_OUTPUT_FORMAT,
                VoiceId=voice_id,
                Engine=Config.POLLY_ENGINE
            )
        except (BotoCoreError, ClientError) as e:
            raise SynthesisError(error_handler.handle_synthesis_error(e, context)) from e

        stream = response.get('AudioStream')
        if stream is None:
            raise SynthesisError(self._no_audio_error(context))

        try:
            audio = stream.read()
        finally:
            stream.close()

        if not audio:
            raise SynthesisError(self._no_audio_error(context))

        logger.debug(f"Synthesized {len(audio)} bytes with voice {voice_id}")
        return audio

    @staticmethod
    def _no_audio_error(context) -> ProcessingError:
        return ProcessingError(
            category=ErrorCategory.AUDIO_SYNTHESIS,
            severity=ErrorSeverity.WARNING,
            message="No audio stream returned from Polly.",
            details=f"Polly returned no audio for IPA '{context['ipa']}'",
            suggested_actions=[
                "Check that the IPA transcription only uses symbols Polly supports",
                "The card will be exported without audio"
            ],
            error_code="SYNTH_004",
            context=context
        )
