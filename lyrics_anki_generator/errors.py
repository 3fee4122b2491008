"""
Error handling system for the Lyrics Anki Generator.

This module provides centralized error definitions, error classification,
and actionable error messages for lyrics analysis, audio synthesis and
Anki package generation.
"""

import logging
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur during processing."""
    INPUT_VALIDATION = "input_validation"
    ANALYSIS = "analysis"
    AUDIO_SYNTHESIS = "audio_synthesis"
    MEDIA = "media"
    ANKI_GENERATION = "anki_generation"
    FILE_SYSTEM = "file_system"
    NETWORK = "network"


@dataclass
class ProcessingError:
    """Represents a processing error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class LyricsAnkiError(Exception):
    """Base exception for Lyrics Anki Generator errors."""

    def __init__(self, processing_error: ProcessingError):
        self.processing_error = processing_error
        super().__init__(processing_error.message)


class VoiceNotFoundError(LyricsAnkiError):
    """Raised when no synthesis voice exists for a language code."""

    def __init__(self, language_code: str):
        self.language_code = language_code
        super().__init__(ProcessingError(
            category=ErrorCategory.AUDIO_SYNTHESIS,
            severity=ErrorSeverity.ERROR,
            message=f"No voices found for language code: {language_code}",
            details=f"The voice catalog returned no neural voices for '{language_code}'",
            suggested_actions=[
                "Check that the analysis reported a valid BCP-47 language code (e.g. 'es-ES')",
                "Verify that a neural voice exists for this language in your AWS region",
            ],
            error_code="VOICE_001",
            context={'language_code': language_code}
        ))


class SynthesisError(LyricsAnkiError):
    """Raised when speech synthesis produces no audio."""
    pass


class MediaFetchError(LyricsAnkiError):
    """Raised when a line's audio cannot be fetched for packaging."""
    pass


class PackagingError(LyricsAnkiError):
    """Raised when Anki package generation fails."""
    pass


class AnalysisError(LyricsAnkiError):
    """Raised when the remote lyrics analysis fails."""
    pass


class AnalysisParseError(AnalysisError):
    """Raised when the lyrics analysis payload does not match the schema."""
    pass


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Provides error categorization and actionable guidance for
    all processing stages.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: List[ProcessingError] = []

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def validate_song_input(self, song_title: str, lyrics: str) -> Optional[ProcessingError]:
        """Validate the title and lyrics submitted for analysis."""
        if not song_title or not song_title.strip():
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Song title is required",
                details="No song title was provided",
                suggested_actions=["Provide the song title as the first argument"],
                error_code="INPUT_001"
            )

        if not lyrics or not lyrics.strip():
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Lyrics are required",
                details="The lyrics text is empty or whitespace only",
                suggested_actions=[
                    "Check that the lyrics file is not empty",
                    "Put one lyric line per line of the file"
                ],
                error_code="INPUT_002"
            )

        return None

    def handle_synthesis_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle speech synthesis errors."""
        error_str = str(error).lower()

        if 'throttl' in error_str or 'rate' in error_str or 'limit' in error_str:
            return ProcessingError(
                category=ErrorCategory.NETWORK,
                severity=ErrorSeverity.WARNING,
                message="Speech synthesis rate limit exceeded",
                details=f"Polly throttled the request: {error}",
                suggested_actions=[
                    "Wait a few minutes before exporting again",
                    "Keep audio synthesis sequential (--workers 1)"
                ],
                error_code="SYNTH_001",
                context=context
            )

        if 'credential' in error_str or 'auth' in error_str or 'access' in error_str:
            return ProcessingError(
                category=ErrorCategory.AUDIO_SYNTHESIS,
                severity=ErrorSeverity.WARNING,
                message="Speech synthesis authentication failed",
                details=f"AWS rejected the request: {error}",
                suggested_actions=[
                    "Check AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY",
                    "Verify the credentials allow polly:SynthesizeSpeech and polly:DescribeVoices"
                ],
                error_code="SYNTH_002",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.AUDIO_SYNTHESIS,
            severity=ErrorSeverity.WARNING,
            message="Speech synthesis failed for a line",
            details=f"Synthesis error: {error}",
            suggested_actions=[
                "Check that the IPA transcription is valid",
                "The card will be exported without audio"
            ],
            error_code="SYNTH_003",
            context=context
        )

    def handle_media_fetch_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle audio fetch failures during export."""
        error_str = str(error).lower()

        if 'no such file' in error_str or 'not found' in error_str or '404' in error_str:
            return ProcessingError(
                category=ErrorCategory.MEDIA,
                severity=ErrorSeverity.WARNING,
                message="Audio file not found",
                details=f"The audio reference could not be resolved: {error}",
                suggested_actions=[
                    "Re-run audio synthesis for this song",
                    "Check that the temporary audio directory was not cleaned up"
                ],
                error_code="MEDIA_001",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.MEDIA,
            severity=ErrorSeverity.WARNING,
            message="Audio fetch failed",
            details=f"Failed to read audio for a line: {error}",
            suggested_actions=["The card will be exported without audio"],
            error_code="MEDIA_002",
            context=context
        )

    def handle_anki_generation_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle Anki package generation errors."""
        error_str = str(error).lower()

        if 'permission' in error_str or 'access' in error_str:
            return ProcessingError(
                category=ErrorCategory.ANKI_GENERATION,
                severity=ErrorSeverity.ERROR,
                message="File permission error",
                details=f"Cannot write Anki package: {error}",
                suggested_actions=[
                    "Check write permissions for the output directory",
                    "Ensure the output file is not open in another application",
                    "Try saving to a different location"
                ],
                error_code="ANKI_001",
                context=context
            )

        if 'space' in error_str or 'disk' in error_str:
            return ProcessingError(
                category=ErrorCategory.ANKI_GENERATION,
                severity=ErrorSeverity.ERROR,
                message="Insufficient disk space",
                details=f"Not enough disk space to create package: {error}",
                suggested_actions=[
                    "Free up disk space",
                    "Choose a different output location"
                ],
                error_code="ANKI_002",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.ANKI_GENERATION,
            severity=ErrorSeverity.ERROR,
            message="Failed to generate Anki package",
            details=f"Failed to create Anki package: {error}",
            suggested_actions=[
                "Verify output directory permissions",
                "Try generating the package again"
            ],
            error_code="ANKI_003",
            context=context
        )

    def handle_analysis_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle lyrics analysis service errors."""
        error_str = str(error).lower()

        if 'timeout' in error_str or 'timed out' in error_str:
            return ProcessingError(
                category=ErrorCategory.NETWORK,
                severity=ErrorSeverity.ERROR,
                message="Failed to analyze lyrics.",
                details=f"Analysis request timed out: {error}",
                suggested_actions=[
                    "Check your internet connection",
                    "Try again in a few moments"
                ],
                error_code="ANALYSIS_001",
                context=context
            )

        if 'api key' in error_str or 'api_key' in error_str or 'auth' in error_str or '401' in error_str:
            return ProcessingError(
                category=ErrorCategory.ANALYSIS,
                severity=ErrorSeverity.ERROR,
                message="Failed to analyze lyrics.",
                details=f"Authentication error with the analysis API: {error}",
                suggested_actions=[
                    "Check that OPENAI_API_KEY is set",
                    "Verify the API key is valid and not expired"
                ],
                error_code="ANALYSIS_002",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.ANALYSIS,
            severity=ErrorSeverity.ERROR,
            message="Failed to analyze lyrics.",
            details=f"Analysis failed: {error}",
            suggested_actions=[
                "Try again in a few moments",
                "Analyze a shorter excerpt of the lyrics"
            ],
            error_code="ANALYSIS_003",
            context=context
        )

    def handle_parse_error(self, problem: str, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle malformed lyrics analysis payloads."""
        return ProcessingError(
            category=ErrorCategory.ANALYSIS,
            severity=ErrorSeverity.ERROR,
            message="Lyrics analysis has an unexpected format",
            details=problem,
            suggested_actions=[
                "Run the analysis again",
                "If loading a saved analysis, check the JSON file was not edited by hand"
            ],
            error_code="PARSE_001",
            context=context
        )

    def create_partial_success_report(self, total_items: int, successful_items: int,
                                      failed_items: List[str]) -> ProcessingError:
        """Create a report for partial success scenarios."""
        success_rate = (successful_items / total_items) * 100 if total_items > 0 else 0

        if success_rate >= 80:
            severity = ErrorSeverity.WARNING
            message = "Processing completed with minor issues"
        elif success_rate >= 50:
            severity = ErrorSeverity.WARNING
            message = "Processing completed with some failures"
        else:
            severity = ErrorSeverity.ERROR
            message = "Processing completed with significant failures"

        return ProcessingError(
            category=ErrorCategory.AUDIO_SYNTHESIS,
            severity=severity,
            message=message,
            details=f"Successfully processed {successful_items}/{total_items} items ({success_rate:.1f}%)",
            suggested_actions=[
                f"Review the {len(failed_items)} failed items",
                "Lines without audio are still exported, with an empty Audio field"
            ],
            error_code="PARTIAL_001",
            context={
                'total_items': total_items,
                'successful_items': successful_items,
                'failed_items': failed_items,
                'success_rate': success_rate
            }
        )


# Global error handler instance
error_handler = ErrorHandler()
