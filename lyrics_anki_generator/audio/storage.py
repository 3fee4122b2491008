"""
Storage for synthesized line audio.

Turns raw audio bytes into playable file references that can be saved with
an analysis and later read back by the package generator.
"""

import logging
import re
import tempfile
from pathlib import Path
from typing import Optional

from ..anki.naming import generate_stable_hash
from ..config import Config


logger = logging.getLogger(__name__)


class AudioClipStore:
    """Writes line audio clips to a directory and hands out file:// URIs."""

    def __init__(self, output_dir: Optional[Path] = None, extension: str = Config.AUDIO_EXTENSION):
        """
        Initialize the clip store.

        Args:
            output_dir: Directory for clips; a fresh temporary directory if None
            extension: File extension matching the synthesizer's output format
        """
        if output_dir is None:
            output_dir = Path(tempfile.mkdtemp(prefix="lyrics_anki_audio_"))
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.extension = extension

    def clip_path(self, song_title: str, index: int, content: str = "") -> Path:
        """
        Path for one line's clip.

        Clips share a path only when sanitized title, index and spoken content
        (language code and IPA) all match.
        """
        base_name = re.sub(r'[^\w\-]+', '_', song_title).strip('_') or 'song'
        digest = generate_stable_hash(content, index)
        return self.output_dir / f"{base_name}_line_{index:03d}_{digest:08x}{self.extension}"

    def save(self, song_title: str, index: int, audio: bytes, content: str = "") -> str:
        """
        Save one line's audio.

        Args:
            song_title: Title of the song, used for the filename
            index: Line index in the analysis
            audio: Encoded audio bytes
            content: What the clip pronounces, hashed into the filename

        Returns:
            file:// URI of the saved clip
        """
        path = self.clip_path(song_title, index, content)
        path.write_bytes(audio)
        logger.debug(f"Saved {len(audio)} bytes of audio to {path}")
        return path.resolve().as_uri()
