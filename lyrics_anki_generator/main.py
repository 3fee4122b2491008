"""
Main entry point for the Lyrics Anki Generator.

Complete pipeline from song lyrics to an Anki package with pronunciation
audio: analyze the lyrics, synthesize audio for each line, export the decks.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Config
from .models import ExportResult, LyricsAnalysis, load_analysis, save_analysis
from .analysis import LyricsAnalysisService, OpenAIAnalysisService
from .audio import AudioClipStore, AudioOrchestrator, PollySpeechSynthesizer, SpeechSynthesizer
from .anki import AnkiPackageGenerator
from .errors import ErrorCategory, ErrorSeverity, LyricsAnkiError, ProcessingError, error_handler
from .progress import ProgressTracker, ProcessingStage, progress_tracker


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def process_pipeline(output_dir: Path,
                     song_title: Optional[str] = None,
                     lyrics: Optional[str] = None,
                     analysis: Optional[LyricsAnalysis] = None,
                     analysis_service: Optional[LyricsAnalysisService] = None,
                     synthesizer: Optional[SpeechSynthesizer] = None,
                     package_generator: Optional[AnkiPackageGenerator] = None,
                     synthesize_audio: bool = True,
                     max_workers: int = Config.AUDIO_MAX_WORKERS,
                     save_analysis_path: Optional[Path] = None,
                     tracker: Optional[ProgressTracker] = None) -> Optional[ExportResult]:
    """
    Execute the complete processing pipeline.

    Either ``analysis`` (a saved analysis) or ``song_title`` and ``lyrics``
    must be given.

    Args:
        output_dir: Directory for the .apkg file
        song_title: Title of the song to analyze
        lyrics: Lyrics to analyze, one line per text line
        analysis: Previously saved analysis to export instead of analyzing
        analysis_service: Analysis service (OpenAI if None)
        synthesizer: Speech synthesizer (Amazon Polly if None)
        package_generator: Package generator (default if None)
        synthesize_audio: Whether to synthesize missing line audio
        max_workers: Concurrent synthesis requests, 1 for sequential
        save_analysis_path: Where to save the analysis with audio references
        tracker: Progress tracker (global tracker if None)

    Returns:
        ExportResult if successful, None otherwise
    """
    logger = logging.getLogger(__name__)
    tracker = tracker or progress_tracker

    error_handler.clear_errors()
    tracker.start_pipeline()
    stage = ProcessingStage.ANALYSIS

    try:
        # Stage 1: Lyrics analysis
        if analysis is None:
            input_error = error_handler.validate_song_input(song_title, lyrics)
            if input_error:
                error_handler.add_error(input_error)
                tracker.complete_stage(stage, success=False)
                tracker.complete_pipeline(success=False)
                return None

            tracker.start_stage(stage, details={'song_title': song_title})
            analysis_service = analysis_service or OpenAIAnalysisService()
            analysis = analysis_service.analyze(song_title, lyrics)
            tracker.complete_stage(stage, details={'language_code': analysis.language_code})
        else:
            tracker.skip_stage(stage, "(using saved analysis)")

        tracker.update_summary_data(lyric_lines=sum(1 for line in analysis.lines if not line.is_blank))

        # Stage 2: Audio synthesis
        stage = ProcessingStage.AUDIO_SYNTHESIS
        if synthesize_audio:
            tracker.start_stage(stage, total_items=len(analysis.lines))

            orchestrator = AudioOrchestrator(
                synthesizer or PollySpeechSynthesizer(),
                AudioClipStore(Config.AUDIO_DIR),
                max_workers=max_workers
            )
            orchestrator.add_status_callback(tracker.line_status_listener(stage))
            orchestrator.run(analysis)

            summary = orchestrator.get_summary()
            if orchestrator.failed:
                needing_audio = summary['synthesized'] + summary['failed']
                error_handler.add_error(error_handler.create_partial_success_report(
                    needing_audio, summary['synthesized'],
                    [analysis.lines[i].text for i in sorted(orchestrator.failed)]
                ))
            tracker.complete_stage(stage, details=summary)
        else:
            tracker.skip_stage(stage, "(--no-audio)")

        if save_analysis_path:
            save_analysis(analysis, save_analysis_path)
            logger.info(f"Saved analysis to {save_analysis_path}")

        # Stage 3: Anki export
        stage = ProcessingStage.ANKI_EXPORT
        tracker.start_stage(stage)
        package_generator = package_generator or AnkiPackageGenerator()
        result = package_generator.export(analysis, output_dir)

        tracker.update_summary_data(
            audio_clips=result.media_count,
            cards_created=result.note_count * 2
        )
        tracker.complete_stage(stage, details={'output_path': str(result.output_path)})
        tracker.complete_pipeline(success=True)
        return result

    except LyricsAnkiError as e:
        error_handler.add_error(e.processing_error)
        tracker.complete_stage(stage, success=False)
        tracker.complete_pipeline(success=False)
        return None

    except Exception as e:
        unexpected_error = ProcessingError(
            category=ErrorCategory.INPUT_VALIDATION,
            severity=ErrorSeverity.CRITICAL,
            message="Unexpected pipeline error",
            details=f"An unexpected error occurred: {e}",
            suggested_actions=[
                "Check the logs for more details",
                "Run again with --verbose for a traceback"
            ],
            error_code="PIPELINE_001",
            context={'stage': stage.value}
        )
        error_handler.add_error(unexpected_error)
        logger.debug("Unexpected pipeline error", exc_info=True)

        tracker.complete_stage(stage, success=False)
        tracker.complete_pipeline(success=False)
        return None


def main():
    """Command line interface."""
    parser = argparse.ArgumentParser(
        description="Generate pronunciation and translation Anki decks from song lyrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "La Vie en rose" lyrics.txt
  %(prog)s "La Vie en rose" lyrics.txt --save-analysis la_vie_en_rose.json
  %(prog)s --analysis la_vie_en_rose.json -o decks/

Environment:
  OPENAI_API_KEY                         lyrics analysis
  AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_REGION   Polly speech synthesis

Output:
  <song title>.apkg with a Pronunciation deck and a Translation deck.
  Re-exporting the same lyrics updates the existing decks in Anki.
        """
    )

    parser.add_argument(
        "song_title",
        nargs='?',
        help="Title of the song"
    )

    parser.add_argument(
        "lyrics_file",
        nargs='?',
        type=Path,
        help="Text file with the lyrics, one line per line"
    )

    parser.add_argument(
        "--analysis",
        type=Path,
        default=None,
        help="Export a previously saved analysis JSON instead of analyzing lyrics"
    )

    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory for the generated Anki package (default: 'output/')"
    )

    parser.add_argument(
        "--save-analysis",
        type=Path,
        default=None,
        help="Save the analysis, with audio references, to this JSON file"
    )

    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Skip speech synthesis; export lines without new audio"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=Config.AUDIO_MAX_WORKERS,
        help="Concurrent speech synthesis requests (default: 1, sequential)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.analysis is None and (not args.song_title or not args.lyrics_file):
        parser.error("provide a song title and lyrics file, or --analysis FILE")

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    Config.ensure_directories()
    output_dir = args.output_dir or Config.OUTPUT_DIR

    analysis = None
    lyrics = None
    try:
        if args.analysis is not None:
            analysis = load_analysis(args.analysis)
        else:
            lyrics = args.lyrics_file.read_text(encoding='utf-8')
    except OSError as e:
        logger.error(f"Cannot read input file: {e}")
        return 1
    except LyricsAnkiError as e:
        logger.error(f"{e} ({e.processing_error.details})")
        return 1

    result = process_pipeline(
        output_dir=output_dir,
        song_title=args.song_title,
        lyrics=lyrics,
        analysis=analysis,
        synthesize_audio=not args.no_audio,
        max_workers=args.workers,
        save_analysis_path=args.save_analysis
    )

    if error_handler.has_errors() or error_handler.has_warnings():
        print("\n" + "=" * 50)
        print("⚠️  ISSUES DETECTED")
        print("=" * 50)

        error_summary = error_handler.get_error_summary()
        for label, key in (("Warnings", 'warnings'), ("Errors", 'errors')):
            if error_summary[key]:
                print(f"{label}: {len(error_summary[key])}")
                for issue in error_summary[key]:
                    print(f"   • {issue['message']}")
                    if issue['suggested_actions']:
                        print(f"     Suggestion: {issue['suggested_actions'][0]}")
        print("=" * 50)

    if result is None:
        logger.error("Pipeline failed. Check the error details above.")
        return 1

    print(f"\n📦 Package saved: {result.output_path}")
    print(f"🃏 {result.note_count} lines, {result.media_count} with audio")
    if result.missing_audio:
        print(f"🔇 Lines without audio: {', '.join(str(i) for i in result.missing_audio)}")
    print("Import the file into Anki with File → Import.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
