"""
Fetches line audio referenced by a lyrics analysis for embedding in packages.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from ..config import Config
from ..errors import MediaFetchError, error_handler


logger = logging.getLogger(__name__)


class MediaFetcher:
    """
    Resolves audio references to bytes.

    Supports ``file://`` URIs written by the audio clip store, plain
    filesystem paths, and ``http(s)://`` URLs.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: float = Config.MEDIA_FETCH_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, audio_ref: str) -> bytes:
        """
        Fetch the audio bytes behind a reference.

        Args:
            audio_ref: URI or path of the audio file

        Returns:
            Raw audio bytes

        Raises:
            MediaFetchError: If the reference cannot be read
        """
        parsed = urlparse(audio_ref)

        try:
            if parsed.scheme in ('http', 'https'):
                response = self.session.get(audio_ref, timeout=self.timeout)
                response.raise_for_status()
                data = response.content
            elif parsed.scheme == 'file':
                data = Path(unquote(parsed.path)).read_bytes()
            elif parsed.scheme == '' or len(parsed.scheme) == 1:
                # Bare paths, including Windows drive letters
                data = Path(audio_ref).read_bytes()
            else:
                raise ValueError(f"Unsupported audio reference scheme: {parsed.scheme}")
        except (OSError, ValueError, requests.RequestException) as e:
            raise MediaFetchError(
                error_handler.handle_media_fetch_error(e, context={'audio_ref': audio_ref})
            ) from e

        if not data:
            raise MediaFetchError(
                error_handler.handle_media_fetch_error(
                    ValueError("Audio reference resolved to an empty file"),
                    context={'audio_ref': audio_ref}
                )
            )

        return data

    def try_fetch(self, audio_ref: Optional[str]) -> Optional[bytes]:
        """
        Fetch audio, treating any failure as "no audio".

        Args:
            audio_ref: URI or path of the audio file, or None

        Returns:
            Audio bytes, or None if there is no reference or the fetch failed
        """
        if not audio_ref:
            return None

        try:
            return self.fetch(audio_ref)
        except MediaFetchError as e:
            logger.warning(f"Failed to fetch audio {audio_ref}: {e.processing_error.details}")
            return None
