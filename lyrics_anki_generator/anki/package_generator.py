"""
Anki package (.apkg) generation using genanki library.

This module builds the pronunciation and translation decks for a song,
embeds the synthesized line audio, and writes everything to a single
re-importable package.
"""

import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import genanki

from ..errors import PackagingError, error_handler
from ..models import ExportResult, LyricLine, LyricsAnalysis
from .media import MediaFetcher
from .naming import (
    PRONUNCIATION_ROLE,
    PRONUNCIATION_SEED,
    TRANSLATION_ROLE,
    TRANSLATION_SEED,
    StableNamingManager,
)
from .templates import CardFormatter, CardModelRegistry


logger = logging.getLogger(__name__)


@dataclass
class DeckPair:
    """The two decks exported for one song."""
    pronunciation: genanki.Deck
    translation: genanki.Deck

    def as_list(self) -> List[genanki.Deck]:
        return [self.pronunciation, self.translation]


class DeckBuilder:
    """
    Creates the empty pronunciation and translation decks for a song.

    Deck ids depend only on the line texts, so songs with identical lyrics
    map to the same decks regardless of title or translations.
    """

    def build(self, analysis: LyricsAnalysis) -> DeckPair:
        """
        Build both decks for an analysis.

        Args:
            analysis: Lyrics analysis of the song

        Returns:
            DeckPair with empty decks
        """
        digest = StableNamingManager.lyrics_digest(line.text for line in analysis.lines)

        pronunciation = genanki.Deck(
            StableNamingManager.deck_id(digest, PRONUNCIATION_SEED),
            StableNamingManager.deck_name(analysis.song_title, PRONUNCIATION_ROLE)
        )
        translation = genanki.Deck(
            StableNamingManager.deck_id(digest, TRANSLATION_SEED),
            StableNamingManager.deck_name(analysis.song_title, TRANSLATION_ROLE)
        )

        logger.info(f"Created decks: {pronunciation.name} (ID: {pronunciation.deck_id}), "
                    f"{translation.name} (ID: {translation.deck_id})")
        return DeckPair(pronunciation=pronunciation, translation=translation)


class NoteBuilder:
    """
    Builds one pronunciation note and one translation note per lyric line.
    """

    def __init__(self, registry: Optional[CardModelRegistry] = None):
        self.registry = registry or CardModelRegistry()
        self.formatter = CardFormatter()

    @staticmethod
    def retained_lines(analysis: LyricsAnalysis) -> List[Tuple[int, LyricLine]]:
        """Non-blank lines paired with their index in the full analysis."""
        return [(index, line) for index, line in enumerate(analysis.lines) if not line.is_blank]

    def build_notes(self, index: int, line: LyricLine,
                    audio_filename: Optional[str]) -> Tuple[genanki.Note, genanki.Note]:
        """
        Create the notes for a single line.

        Args:
            index: Position of the line in the full analysis
            line: The lyric line
            audio_filename: Embedded media filename, or None without audio

        Returns:
            (pronunciation_note, translation_note)
        """
        pronunciation_note = genanki.Note(
            model=self.registry.pronunciation,
            fields=self.formatter.format_pronunciation_fields(
                line.text, line.ipa, audio_filename
            ),
            guid=StableNamingManager.note_guid(PRONUNCIATION_ROLE, line.text, index)
        )

        translation_note = genanki.Note(
            model=self.registry.translation,
            fields=self.formatter.format_translation_fields(
                line.text, line.translation, line.literal_explanation
            ),
            guid=StableNamingManager.note_guid(TRANSLATION_ROLE, line.text, index)
        )

        logger.debug(f"Created notes for line {index}: {line.text}")
        return pronunciation_note, translation_note

    def build(self, analysis: LyricsAnalysis,
              audio_filenames: Optional[Dict[int, str]] = None
              ) -> Tuple[List[genanki.Note], List[genanki.Note]]:
        """
        Create notes for every non-blank line.

        Args:
            analysis: Lyrics analysis of the song
            audio_filenames: Line index to embedded media filename

        Returns:
            (pronunciation_notes, translation_notes) in line order
        """
        audio_filenames = audio_filenames or {}
        pronunciation_notes = []
        translation_notes = []

        for index, line in self.retained_lines(analysis):
            pronunciation_note, translation_note = self.build_notes(
                index, line, audio_filenames.get(index)
            )
            pronunciation_notes.append(pronunciation_note)
            translation_notes.append(translation_note)

        return pronunciation_notes, translation_notes


@dataclass
class AnkiExportPackage:
    """In-memory package: decks with their notes, models and media."""
    song_title: str
    decks: DeckPair
    models: List[genanki.Model]
    media: Dict[str, bytes] = field(default_factory=dict)
    missing_audio: List[int] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return StableNamingManager.package_filename(self.song_title)


class AnkiPackageGenerator:
    """
    Generates complete .apkg files with both decks and line audio.

    Uses genanki library to create valid Anki packages with embedded
    audio files.
    """

    def __init__(self, media_fetcher: Optional[MediaFetcher] = None,
                 registry: Optional[CardModelRegistry] = None):
        """Initialize the package generator."""
        self.registry = registry or CardModelRegistry()
        self.media_fetcher = media_fetcher or MediaFetcher()
        self.deck_builder = DeckBuilder()
        self.note_builder = NoteBuilder(self.registry)

    def assemble(self, analysis: LyricsAnalysis) -> AnkiExportPackage:
        """
        Build decks, notes and the media table for an analysis.

        A line whose audio cannot be fetched is exported without audio.

        Args:
            analysis: Lyrics analysis, possibly with some audio missing

        Returns:
            AnkiExportPackage ready to be written
        """
        retained = self.note_builder.retained_lines(analysis)
        logger.info(f"Assembling Anki package for '{analysis.song_title}' with {len(retained)} lines")

        decks = self.deck_builder.build(analysis)
        for deck in decks.as_list():
            for model in self.registry.all_models():
                deck.add_model(model)

        package = AnkiExportPackage(
            song_title=analysis.song_title,
            decks=decks,
            models=self.registry.all_models(),
        )

        for index, line in retained:
            audio_data = self.media_fetcher.try_fetch(line.audio_ref)
            audio_filename = None

            if audio_data:
                audio_filename = StableNamingManager.audio_filename(index)
                package.media[audio_filename] = audio_data
            else:
                package.missing_audio.append(index)

            pronunciation_note, translation_note = self.note_builder.build_notes(
                index, line, audio_filename
            )
            decks.pronunciation.add_note(pronunciation_note)
            decks.translation.add_note(translation_note)

        logger.info(f"Created {len(retained)} notes per deck with {len(package.media)} media files")
        if package.missing_audio:
            logger.warning(f"{len(package.missing_audio)} lines have no audio: {package.missing_audio}")

        return package

    def write(self, package: AnkiExportPackage, output_dir: Path,
              timestamp: Optional[float] = None) -> Path:
        """
        Serialize a package to ``output_dir/<title>.apkg``.

        Args:
            package: Assembled package
            output_dir: Directory for the .apkg file
            timestamp: Fixed creation timestamp, mainly for tests

        Returns:
            Path of the written package

        Raises:
            PackagingError: If the package cannot be written
        """
        output_path = Path(output_dir) / package.filename

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with tempfile.TemporaryDirectory(prefix="lyrics_anki_media_") as staging_dir:
                # genanki embeds media from files, named after their basename
                media_files = []
                for filename, data in sorted(package.media.items()):
                    media_path = Path(staging_dir) / filename
                    media_path.write_bytes(data)
                    media_files.append(str(media_path))

                anki_package = genanki.Package(package.decks.as_list())
                anki_package.media_files = media_files
                anki_package.write_to_file(str(output_path), timestamp=timestamp)

        except Exception as e:
            raise PackagingError(
                error_handler.handle_anki_generation_error(
                    e, context={'output_path': str(output_path)}
                )
            ) from e

        logger.info(f"Successfully created Anki package: {output_path}")
        return output_path

    def export(self, analysis: LyricsAnalysis, output_dir: Path,
               timestamp: Optional[float] = None) -> ExportResult:
        """
        Assemble and write the package for an analysis.

        Returns:
            ExportResult describing the written file
        """
        package = self.assemble(analysis)
        output_path = self.write(package, output_dir, timestamp=timestamp)

        return ExportResult(
            output_path=output_path,
            pronunciation_deck_id=package.decks.pronunciation.deck_id,
            translation_deck_id=package.decks.translation.deck_id,
            note_count=len(package.decks.pronunciation.notes),
            media_count=len(package.media),
            missing_audio=list(package.missing_audio),
        )


class PackageValidator:
    """
    Validates Anki packages for correctness and completeness.
    """

    @staticmethod
    def validate_package(package_path: str) -> bool:
        """
        Validate that an Anki package is properly formatted.

        Args:
            package_path: Path to the .apkg file

        Returns:
            True if package is valid, False otherwise
        """
        if not os.path.exists(package_path):
            logger.error(f"Package file not found: {package_path}")
            return False

        if not str(package_path).lower().endswith('.apkg'):
            logger.error(f"Invalid file extension: {package_path}")
            return False

        file_size = os.path.getsize(package_path)
        if file_size == 0:
            logger.error(f"Package file is empty: {package_path}")
            return False

        if not zipfile.is_zipfile(package_path):
            logger.error(f"Package is not a zip archive: {package_path}")
            return False

        with zipfile.ZipFile(package_path) as archive:
            names = set(archive.namelist())
        missing = {'collection.anki2', 'media'} - names
        if missing:
            logger.error(f"Package is missing entries {sorted(missing)}: {package_path}")
            return False

        logger.info(f"Package validation passed: {package_path} ({file_size} bytes)")
        return True

    @staticmethod
    def get_package_info(package_path: str) -> dict:
        """
        Get information about an Anki package.

        Args:
            package_path: Path to the .apkg file

        Returns:
            Dictionary with package information
        """
        info = {
            'path': str(package_path),
            'exists': False,
            'size_bytes': 0,
            'valid': False
        }

        if os.path.exists(package_path):
            info['exists'] = True
            info['size_bytes'] = os.path.getsize(package_path)
            info['valid'] = PackageValidator.validate_package(package_path)

        return info
