"""
Voice resolution for Amazon Polly speech synthesis.
"""

import logging
import threading
from typing import Any, Dict, Optional

from ..config import Config
from ..errors import VoiceNotFoundError


logger = logging.getLogger(__name__)


class VoiceCache:
    """
    Session-scoped map of language code to voice id.

    Entries are only ever added; a resolved voice is kept for the lifetime
    of the cache. Safe to share between worker threads.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._voices: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, language_code: str) -> Optional[str]:
        with self._lock:
            return self._voices.get(language_code)

    def seed(self, language_code: str, voice_id: str) -> str:
        """
        Store a voice unless one is already cached.

        Returns:
            The voice id now cached for the language
        """
        with self._lock:
            return self._voices.setdefault(language_code, voice_id)

    def clear(self) -> None:
        with self._lock:
            self._voices.clear()

    def __contains__(self, language_code: str) -> bool:
        with self._lock:
            return language_code in self._voices

    def __len__(self) -> int:
        with self._lock:
            return len(self._voices)


class VoiceResolver:
    """
    Resolves a language code to the first available neural Polly voice.
    """

    def __init__(self, polly_client: Any, cache: Optional[VoiceCache] = None,
                 engine: str = Config.POLLY_ENGINE):
        """
        Initialize the voice resolver.

        Args:
            polly_client: boto3 Polly client (or compatible double)
            cache: Voice cache shared across resolvers of a session
            engine: Polly engine tier voices must support
        """
        self.client = polly_client
        self.cache = cache if cache is not None else VoiceCache()
        self.engine = engine

    def resolve(self, language_code: str) -> str:
        """
        Get the voice id to use for a language.

        Args:
            language_code: Language code such as 'en-US' or 'es-ES'

        Returns:
            Polly voice id

        Raises:
            VoiceNotFoundError: If the catalog has no voice for the language
        """
        cached = self.cache.get(language_code)
        if cached:
            return cached

        response = self.client.describe_voices(
            Engine=self.engine,
            LanguageCode=language_code
        )

        voices = response.get('Voices') or []
        if not voices or not voices[0].get('Id'):
            raise VoiceNotFoundError(language_code)

        voice_id = self.cache.seed(language_code, voices[0]['Id'])
        logger.info(f"Resolved voice {voice_id} for {language_code}")
        return voice_id
