"""
Lyrics analysis module producing IPA, translations and literal meanings.
"""

from lyrics_anki_generator.analysis.services import LyricsAnalysisService
from lyrics_anki_generator.analysis.openai_service import OpenAIAnalysisService

__all__ = [
    'LyricsAnalysisService',
    'OpenAIAnalysisService'
]
