"""
Lyrics Anki Generator.

Turns analyzed song lyrics into pronunciation and translation Anki decks
with synthesized IPA audio.
"""

__version__ = "0.1.0"
