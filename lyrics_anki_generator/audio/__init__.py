"""
Audio module for IPA speech synthesis and per-line orchestration.
"""

from .voices import VoiceCache, VoiceResolver
from .synthesizer import SpeechSynthesizer, PollySpeechSynthesizer, build_ipa_ssml
from .storage import AudioClipStore
from .orchestrator import AudioOrchestrator

__all__ = [
    'VoiceCache',
    'VoiceResolver',
    'SpeechSynthesizer',
    'PollySpeechSynthesizer',
    'build_ipa_ssml',
    'AudioClipStore',
    'AudioOrchestrator'
]
