"""
Audio synthesis orchestration across all lines of a lyrics analysis.

Lines are synthesized one at a time by default so a song never puts
uncontrolled concurrent load on the rate-limited speech API. A failure on
one line is logged and the remaining lines still get their audio.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, FrozenSet, List, Optional

from ..config import Config
from ..errors import LyricsAnkiError
from ..models import (
    LineStatus,
    LineStatusEvent,
    LyricLine,
    LyricsAnalysis,
    OrchestratorState,
)
from .storage import AudioClipStore
from .synthesizer import SpeechSynthesizer


logger = logging.getLogger(__name__)


class AudioOrchestrator:
    """
    Populates ``audio_ref`` for every line of one analysis.

    Runs at most once: the first ``run`` call moves the orchestrator from
    NOT_STARTED to RUNNING under a lock, and every later call returns
    immediately. Progress is reported through status callbacks and the
    ``loading_indices`` snapshot.
    """

    def __init__(self, synthesizer: SpeechSynthesizer,
                 store: Optional[AudioClipStore] = None,
                 max_workers: int = Config.AUDIO_MAX_WORKERS):
        """
        Initialize the orchestrator.

        Args:
            synthesizer: Speech synthesizer for IPA strings
            store: Clip store turning audio bytes into references
            max_workers: 1 for strictly sequential synthesis, more for a bounded pool
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.synthesizer = synthesizer
        self.store = store or AudioClipStore()
        self.max_workers = max_workers

        self._lock = threading.Lock()
        self._state = OrchestratorState.NOT_STARTED
        self._loading: set = set()
        self._callbacks: List[Callable[[LineStatusEvent], None]] = []

        self.synthesized: List[int] = []
        self.skipped: List[int] = []
        self.failed: Dict[int, str] = {}

    @property
    def state(self) -> OrchestratorState:
        with self._lock:
            return self._state

    @property
    def loading_indices(self) -> FrozenSet[int]:
        """Indices of lines whose audio is currently being synthesized."""
        with self._lock:
            return frozenset(self._loading)

    def add_status_callback(self, callback: Callable[[LineStatusEvent], None]) -> None:
        """Add a callback function to be called for every line status change."""
        self._callbacks.append(callback)

    def run(self, analysis: LyricsAnalysis) -> bool:
        """
        Synthesize audio for every line that needs it.

        Args:
            analysis: Analysis whose lines are updated in place

        Returns:
            True if this call performed the run, False if it already ran
        """
        with self._lock:
            if self._state is not OrchestratorState.NOT_STARTED:
                logger.debug(f"Audio orchestration already {self._state.value}, ignoring run()")
                return False
            self._state = OrchestratorState.RUNNING

        logger.info(f"Synthesizing audio for {len(analysis.lines)} lines of '{analysis.song_title}'")

        try:
            if self.max_workers == 1:
                self._run_sequential(analysis)
            else:
                self._run_pooled(analysis)
        finally:
            with self._lock:
                self._state = OrchestratorState.DONE

        logger.info(f"Audio synthesis finished: {len(self.synthesized)} synthesized, "
                    f"{len(self.skipped)} skipped, {len(self.failed)} failed")
        return True

    def get_summary(self) -> Dict[str, object]:
        """Summary of the run for reporting."""
        return {
            'state': self.state.value,
            'synthesized': len(self.synthesized),
            'skipped': len(self.skipped),
            'failed': len(self.failed),
            'failed_lines': dict(self.failed),
        }

    def _run_sequential(self, analysis: LyricsAnalysis) -> None:
        for index, line in enumerate(analysis.lines):
            skip_event = self._begin_line(index, line)
            if skip_event:
                self._emit(skip_event)
                continue
            self._emit(self._synthesize_line(analysis, index, line))

    def _run_pooled(self, analysis: LyricsAnalysis) -> None:
        # Completion events are still reported in line order
        pending = []
        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="audio-synthesis") as executor:
            for index, line in enumerate(analysis.lines):
                skip_event = self._begin_line(index, line)
                if skip_event:
                    pending.append(skip_event)
                else:
                    pending.append(executor.submit(self._synthesize_line, analysis, index, line))

            for item in pending:
                self._emit(item if isinstance(item, LineStatusEvent) else item.result())

    def _begin_line(self, index: int, line: LyricLine) -> Optional[LineStatusEvent]:
        """Mark a line as loading, or return a SKIPPED event if it needs no audio."""
        if line.is_blank or line.audio_ref:
            with self._lock:
                self.skipped.append(index)
            reason = "blank line" if line.is_blank else "audio already present"
            return LineStatusEvent(index=index, status=LineStatus.SKIPPED, message=reason)

        with self._lock:
            self._loading.add(index)
        self._emit(LineStatusEvent(index=index, status=LineStatus.LOADING))
        return None

    def _synthesize_line(self, analysis: LyricsAnalysis, index: int,
                         line: LyricLine) -> LineStatusEvent:
        try:
            audio = self.synthesizer.synthesize(line.ipa, analysis.language_code)
            audio_ref = self.store.save(
                analysis.song_title, index, audio,
                content=f"{analysis.language_code}\n{line.ipa}"
            )

            with self._lock:
                if line.audio_ref is None:
                    line.audio_ref = audio_ref
                self.synthesized.append(index)

            return LineStatusEvent(index=index, status=LineStatus.DONE, message=line.audio_ref)

        except LyricsAnkiError as e:
            logger.warning(f"Failed to synthesize audio for line {index} ('{line.text}'): {e}")
            return self._record_failure(index, str(e))
        except Exception as e:
            logger.error(f"Unexpected error synthesizing line {index} ('{line.text}'): {e}")
            return self._record_failure(index, str(e))
        finally:
            with self._lock:
                self._loading.discard(index)

    def _record_failure(self, index: int, message: str) -> LineStatusEvent:
        with self._lock:
            self.failed[index] = message
        return LineStatusEvent(index=index, status=LineStatus.FAILED, message=message)

    def _emit(self, event: LineStatusEvent) -> None:
        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Status callback failed for line {event.index} "
                             f"({event.status.value}): {e}")
