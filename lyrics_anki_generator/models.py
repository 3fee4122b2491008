"""
Core data models for the Lyrics Anki Generator.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import AnalysisParseError, error_handler


@dataclass
class LyricLine:
    """Represents one analyzed line of a song."""
    text: str
    ipa: str
    translation: str
    literal_explanation: str
    audio_ref: Optional[str] = None  # URI of the synthesized pronunciation audio

    @property
    def is_blank(self) -> bool:
        """Blank lines get neither audio nor cards."""
        return not self.text.strip()


@dataclass
class LyricsAnalysis:
    """Represents the complete analysis of a song's lyrics."""
    song_title: str
    language_code: str
    context_notes: str
    lines: List[LyricLine] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "LyricsAnalysis":
        """
        Build an analysis from the upstream JSON shape.

        Args:
            data: Decoded JSON object with songName, languageCode,
                generalContextInformation and a lyrics array

        Returns:
            LyricsAnalysis instance

        Raises:
            AnalysisParseError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            _reject(f"Expected a JSON object, got {type(data).__name__}")

        lyrics = data.get('lyrics')
        if not isinstance(lyrics, list):
            _reject("Field 'lyrics' must be an array")

        lines = []
        for index, entry in enumerate(lyrics):
            if not isinstance(entry, dict):
                _reject(f"lyrics[{index}] must be an object")
            audio_ref = entry.get('ipaAudioUrl')
            if audio_ref is not None and not isinstance(audio_ref, str):
                _reject(f"lyrics[{index}].ipaAudioUrl must be a string")
            lines.append(LyricLine(
                text=_require_str(entry, 'line', f"lyrics[{index}]"),
                ipa=_require_str(entry, 'ipa', f"lyrics[{index}]"),
                translation=_require_str(entry, 'translation', f"lyrics[{index}]"),
                literal_explanation=_require_str(
                    entry, 'literalTranslationExplanation', f"lyrics[{index}]"
                ),
                audio_ref=audio_ref or None,
            ))

        return cls(
            song_title=_require_str(data, 'songName', 'analysis'),
            language_code=_require_str(data, 'languageCode', 'analysis'),
            context_notes=_require_str(data, 'generalContextInformation', 'analysis'),
            lines=lines,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the upstream JSON shape."""
        lyrics = []
        for line in self.lines:
            entry = {
                'line': line.text,
                'ipa': line.ipa,
                'translation': line.translation,
                'literalTranslationExplanation': line.literal_explanation,
            }
            if line.audio_ref:
                entry['ipaAudioUrl'] = line.audio_ref
            lyrics.append(entry)

        return {
            'songName': self.song_title,
            'languageCode': self.language_code,
            'generalContextInformation': self.context_notes,
            'lyrics': lyrics,
        }


def _reject(problem: str):
    raise AnalysisParseError(error_handler.handle_parse_error(problem))


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        _reject(f"Field '{key}' in {where} must be a string")
    return value


def load_analysis(path: Path) -> LyricsAnalysis:
    """Load a saved analysis from a JSON file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        _reject(f"Invalid JSON in {path}: {e}")
    return LyricsAnalysis.from_dict(data)


def save_analysis(analysis: LyricsAnalysis, path: Path) -> None:
    """Save an analysis, including audio references, as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(analysis.to_dict(), f, ensure_ascii=False, indent=2)


class LineStatus(Enum):
    """Audio synthesis status of a single lyric line."""
    PENDING = "pending"
    LOADING = "loading"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class OrchestratorState(Enum):
    """Lifecycle of an audio orchestration run."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    DONE = "done"


@dataclass
class LineStatusEvent:
    """Progress signal emitted for one line during audio synthesis."""
    index: int
    status: LineStatus
    message: str = ""


@dataclass
class ExportResult:
    """Outcome of writing an Anki package."""
    output_path: Path
    pronunciation_deck_id: int
    translation_deck_id: int
    note_count: int  # per deck
    media_count: int
    missing_audio: List[int] = field(default_factory=list)
