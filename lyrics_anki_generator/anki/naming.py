"""
Stable naming and identifiers for Anki packages.

Deck ids and note GUIDs are derived from song content only, so exporting the
same song again updates the decks and study history already in Anki instead
of importing duplicates.
"""

import logging
import re
import struct
from typing import Iterable

from ..config import Config


logger = logging.getLogger(__name__)


# Anki stores ids in a signed 32-bit range; 2**31 - 1 keeps results positive.
ANKI_ID_MODULUS = 0x7FFFFFFF

PRONUNCIATION_SEED = 1
TRANSLATION_SEED = 2

PRONUNCIATION_ROLE = "pronunciation"
TRANSLATION_ROLE = "translation"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _utf16_code_units(text: str) -> Iterable[int]:
    data = text.encode('utf-16-le', 'surrogatepass')
    for (unit,) in struct.iter_unpack('<H', data):
        yield unit


def generate_stable_hash(text: str, seed: int = 0) -> int:
    """
    Create a stable hash number from a string within Anki's id range.

    A seeded variant of the classic multiply-by-31 string hash:

    1. Start with the seed value
    2. For each UTF-16 code unit: hash = (hash * 31) + unit
    3. Wrap to a signed 32-bit integer
    4. Return abs(hash) modulo 2^31 - 1

    Previously exported packages depend on this being reproduced
    bit for bit. Not suitable for security purposes.

    Args:
        text: The string to hash
        seed: Seed to derive different hashes for the same string

    Returns:
        Integer in [0, 2^31 - 1)
    """
    value = _to_int32(seed)
    for unit in _utf16_code_units(text):
        value = _to_int32(value * 31 + unit)
    return abs(value) % ANKI_ID_MODULUS


class StableNamingManager:
    """
    Derives deck ids, note GUIDs and filenames from song content.
    """

    @staticmethod
    def lyrics_digest(line_texts: Iterable[str]) -> str:
        """Join every line text, blank lines included, with newlines."""
        return '\n'.join(line_texts)

    @staticmethod
    def deck_id(digest: str, seed: int) -> int:
        """
        Generate a deck id from the lyrics digest and a role seed.

        Args:
            digest: Newline-joined line texts
            seed: PRONUNCIATION_SEED or TRANSLATION_SEED

        Returns:
            Deck id, identical for identical lyrics across sessions
        """
        deck_id = generate_stable_hash(digest, seed)
        logger.debug(f"Generated deck ID {deck_id} (seed {seed})")
        return deck_id

    @staticmethod
    def note_guid(role: str, text: str, index: int) -> str:
        """
        Generate a note GUID from the card role, line text and line index.

        The index is the line's position in the full analysis, blank lines
        included.
        """
        return str(generate_stable_hash(f"{role}_{text}", index))

    @staticmethod
    def deck_name(song_title: str, role: str) -> str:
        """Build the deck name shown in Anki for a card role."""
        return f"{song_title} - {role.title()}"

    @staticmethod
    def audio_filename(index: int) -> str:
        """Media filename for the audio of the line at ``index``."""
        return f"line_{index}{Config.AUDIO_EXTENSION}"

    @staticmethod
    def package_filename(song_title: str) -> str:
        """
        Generate the .apkg filename for a song.

        Runs of whitespace in the title collapse to one underscore.
        """
        return re.sub(r'\s+', '_', song_title) + Config.PACKAGE_EXTENSION
