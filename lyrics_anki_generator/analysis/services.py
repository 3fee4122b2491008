"""
Base service interface for lyrics analysis.
"""

from abc import ABC, abstractmethod
from lyrics_anki_generator.models import LyricsAnalysis


class LyricsAnalysisService(ABC):
    """Base interface for lyrics analysis services."""

    @abstractmethod
    def analyze(self, song_title: str, lyrics: str) -> LyricsAnalysis:
        """
        Analyze song lyrics line by line.

        Args:
            song_title: Name of the song
            lyrics: Lyrics, one line per text line

        Returns:
            LyricsAnalysis with IPA, translation and literal meaning per line
        """
        pass
