"""
Anki card models and field formatting for song lyric cards.

This module defines the two note types exported for every song:
a pronunciation card (line, IPA, audio) and a translation card
(line, translation, literal meaning).
"""

import logging
from typing import List, Optional
import genanki


logger = logging.getLogger(__name__)


# Both card types produce a card whenever field 0 (Original) is non-empty.
ORIGINAL_FIELD_REQUIREMENT = [[0, 'all', [0]]]

CARD_CSS = """
.card {
    font-family: "Helvetica Neue", Helvetica, Arial, sans-serif;
    font-size: 20px;
    text-align: center;
    color: black;
    background-color: white;
    padding: 20px;
}
"""


class PronunciationCardTemplate:
    """
    Anki model for pronunciation practice.

    Creates cards with:
    - Front: original lyric line
    - Back: IPA transcription with audio playback
    """

    # If you change this model, bump the ID or old decks will misread fields.
    MODEL_ID = 1740052059953
    MODEL_NAME = 'Song Pronunciation Model'
    FIELDS = ['Original', 'IPA', 'Audio']

    FRONT_TEMPLATE = '{{Original}}'
    BACK_TEMPLATE = '{{FrontSide}}<hr id="answer">IPA: {{IPA}}<br><br>{{Audio}}'

    @classmethod
    def create_model(cls) -> genanki.Model:
        """
        Create the Anki model for pronunciation cards.

        Returns:
            genanki.Model: Configured Anki model
        """
        model = genanki.Model(
            model_id=cls.MODEL_ID,
            name=cls.MODEL_NAME,
            fields=[{'name': name} for name in cls.FIELDS],
            templates=[
                {
                    'name': 'Pronunciation Card',
                    'qfmt': cls.FRONT_TEMPLATE,
                    'afmt': cls.BACK_TEMPLATE,
                },
            ],
            css=CARD_CSS,
        )

        logger.debug(f"Created pronunciation model with ID {cls.MODEL_ID}")
        return model


class TranslationCardTemplate:
    """
    Anki model for meaning practice.

    Creates cards with:
    - Front: original lyric line
    - Back: natural translation and literal word-by-word meaning
    """

    # If you change this model, bump the ID or old decks will misread fields.
    MODEL_ID = 1740052059954
    MODEL_NAME = 'Song Translation Model'
    FIELDS = ['Original', 'Translation', 'LiteralMeaning']

    FRONT_TEMPLATE = '{{Original}}'
    BACK_TEMPLATE = (
        '{{FrontSide}}<hr id="answer">Translation: {{Translation}}'
        '<br><br>Literal Meaning: {{LiteralMeaning}}'
    )

    @classmethod
    def create_model(cls) -> genanki.Model:
        """
        Create the Anki model for translation cards.

        Returns:
            genanki.Model: Configured Anki model
        """
        model = genanki.Model(
            model_id=cls.MODEL_ID,
            name=cls.MODEL_NAME,
            fields=[{'name': name} for name in cls.FIELDS],
            templates=[
                {
                    'name': 'Translation Card',
                    'qfmt': cls.FRONT_TEMPLATE,
                    'afmt': cls.BACK_TEMPLATE,
                },
            ],
            css=CARD_CSS,
        )

        logger.debug(f"Created translation model with ID {cls.MODEL_ID}")
        return model


class CardModelRegistry:
    """
    Holds the single pronunciation and translation model instances.
    """

    def __init__(self):
        self.pronunciation = PronunciationCardTemplate.create_model()
        self.translation = TranslationCardTemplate.create_model()

    def all_models(self) -> List[genanki.Model]:
        return [self.pronunciation, self.translation]


class CardFormatter:
    """
    Formats lyric line data into Anki note fields.
    """

    @staticmethod
    def media_tag(audio_filename: Optional[str]) -> str:
        """Anki sound tag for an embedded file, or '' when there is no audio."""
        if not audio_filename:
            return ''
        return f'[sound:{audio_filename}]'

    @staticmethod
    def format_pronunciation_fields(text: str, ipa: str,
                                    audio_filename: Optional[str]) -> List[str]:
        """
        Format a line into pronunciation card fields.

        Args:
            text: Original lyric line
            ipa: IPA transcription of the line
            audio_filename: Embedded media filename, or None without audio

        Returns:
            Field values in PronunciationCardTemplate.FIELDS order
        """
        return [text, ipa, CardFormatter.media_tag(audio_filename)]

    @staticmethod
    def format_translation_fields(text: str, translation: str,
                                  literal_explanation: str) -> List[str]:
        """Format a line into translation card fields."""
        return [text, translation, literal_explanation]
