"""
Anki package generation module for song lyric cards.

This module provides functionality to create complete .apkg files with
pronunciation and translation decks, stable identifiers and embedded audio.
"""

from .templates import (
    PronunciationCardTemplate,
    TranslationCardTemplate,
    CardModelRegistry,
    CardFormatter,
)
from .naming import generate_stable_hash, StableNamingManager
from .media import MediaFetcher
from .package_generator import (
    AnkiExportPackage,
    AnkiPackageGenerator,
    DeckBuilder,
    DeckPair,
    NoteBuilder,
    PackageValidator,
)

__all__ = [
    'PronunciationCardTemplate',
    'TranslationCardTemplate',
    'CardModelRegistry',
    'CardFormatter',
    'generate_stable_hash',
    'StableNamingManager',
    'MediaFetcher',
    'AnkiExportPackage',
    'AnkiPackageGenerator',
    'DeckBuilder',
    'DeckPair',
    'NoteBuilder',
    'PackageValidator',
]
