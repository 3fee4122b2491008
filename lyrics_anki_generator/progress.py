"""
Progress tracking and user feedback system.

Provides progress indicators and completion summaries for the analysis,
audio synthesis and export stages of the Lyrics Anki Generator.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any, Callable
from dataclasses import dataclass, field
from enum import Enum

from .models import LineStatus, LineStatusEvent


class ProcessingStage(Enum):
    """Major processing stages for progress tracking."""
    ANALYSIS = "analysis"
    AUDIO_SYNTHESIS = "audio_synthesis"
    ANKI_EXPORT = "anki_export"


@dataclass
class StageProgress:
    """Progress information for a processing stage."""
    stage: ProcessingStage
    status: str = "pending"  # pending, in_progress, completed, failed, skipped
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    progress_percentage: float = 0.0
    current_item: str = ""
    total_items: int = 0
    completed_items: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> Optional[timedelta]:
        """Get the duration of this stage."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        elif self.start_time:
            return datetime.now() - self.start_time
        return None

    @property
    def is_active(self) -> bool:
        """Check if this stage is currently active."""
        return self.status == "in_progress"

    @property
    def is_completed(self) -> bool:
        """Check if this stage is completed."""
        return self.status in ["completed", "failed", "skipped"]


class ProgressTracker:
    """
    Tracks progress across all processing stages and provides user feedback.
    """

    def __init__(self, enable_console_output: bool = True):
        """
        Initialize the progress tracker.

        Args:
            enable_console_output: Whether to print progress to console
        """
        self.logger = logging.getLogger(__name__)
        self.enable_console_output = enable_console_output

        self.stages: Dict[ProcessingStage, StageProgress] = {
            stage: StageProgress(stage=stage) for stage in ProcessingStage
        }

        self.pipeline_start_time: Optional[datetime] = None
        self.pipeline_end_time: Optional[datetime] = None
        self.current_stage: Optional[ProcessingStage] = None

        self.progress_callbacks: List[Callable[[StageProgress], None]] = []
        self.summary_data: Dict[str, Any] = {}

    def add_progress_callback(self, callback: Callable[[StageProgress], None]) -> None:
        """Add a callback function to be called on progress updates."""
        self.progress_callbacks.append(callback)

    def start_pipeline(self) -> None:
        """Start tracking the overall pipeline."""
        self.pipeline_start_time = datetime.now()
        self.logger.info("Starting Lyrics Anki Generator pipeline")
        if self.enable_console_output:
            print("🚀 Starting Lyrics Anki Generator pipeline")
            print("=" * 50)

    def start_stage(self, stage: ProcessingStage, total_items: int = 0, details: Dict[str, Any] = None) -> None:
        """
        Start a processing stage.

        Args:
            stage: The processing stage to start
            total_items: Total number of items to process in this stage
            details: Additional details about the stage
        """
        stage_progress = self.stages[stage]
        stage_progress.status = "in_progress"
        stage_progress.start_time = datetime.now()
        stage_progress.total_items = total_items
        stage_progress.completed_items = 0
        stage_progress.progress_percentage = 0.0
        stage_progress.details = details or {}

        self.current_stage = stage

        stage_name = stage.value.replace('_', ' ').title()
        self.logger.info(f"Starting stage: {stage_name}")

        if self.enable_console_output:
            print(f"\n📋 {stage_name}")
            if total_items > 0:
                print(f"   Processing {total_items} items...")

        for callback in self.progress_callbacks:
            callback(stage_progress)

    def update_stage_progress(self, stage: ProcessingStage, completed_items: int = None,
                              current_item: str = "", details: Dict[str, Any] = None) -> None:
        """
        Update progress for a stage.

        Args:
            stage: The processing stage to update
            completed_items: Number of completed items
            current_item: Description of current item being processed
            details: Additional details to update
        """
        stage_progress = self.stages[stage]

        if completed_items is not None:
            stage_progress.completed_items = completed_items
            if stage_progress.total_items > 0:
                stage_progress.progress_percentage = (completed_items / stage_progress.total_items) * 100

        if current_item:
            stage_progress.current_item = current_item

        if details:
            stage_progress.details.update(details)

        if stage_progress.total_items > 0:
            self.logger.debug(
                f"{stage.value}: {stage_progress.completed_items}/{stage_progress.total_items} "
                f"({stage_progress.progress_percentage:.1f}%)"
            )

        for callback in self.progress_callbacks:
            callback(stage_progress)

    def complete_stage(self, stage: ProcessingStage, success: bool = True,
                       details: Dict[str, Any] = None) -> None:
        """
        Mark a stage as completed.

        Args:
            stage: The processing stage to complete
            success: Whether the stage completed successfully
            details: Additional completion details
        """
        stage_progress = self.stages[stage]
        stage_progress.status = "completed" if success else "failed"
        stage_progress.end_time = datetime.now()
        stage_progress.progress_percentage = 100.0 if success else stage_progress.progress_percentage

        if details:
            stage_progress.details.update(details)

        stage_name = stage.value.replace('_', ' ').title()
        duration = stage_progress.duration
        duration_str = f" ({duration.total_seconds():.1f}s)" if duration else ""

        if success:
            self.logger.info(f"Completed stage: {stage_name}{duration_str}")
            if self.enable_console_output:
                print(f"   ✅ Completed{duration_str}")
        else:
            self.logger.error(f"Failed stage: {stage_name}{duration_str}")
            if self.enable_console_output:
                print(f"   ❌ Failed{duration_str}")

        if self.current_stage == stage:
            self.current_stage = None

        for callback in self.progress_callbacks:
            callback(stage_progress)

    def skip_stage(self, stage: ProcessingStage, reason: str = "") -> None:
        """Mark a stage as not needed for this run."""
        stage_progress = self.stages[stage]
        stage_progress.status = "skipped"
        stage_progress.details['reason'] = reason
        self.logger.info(f"Skipping stage: {stage.value} {reason}".rstrip())

    def line_status_listener(self, stage: ProcessingStage = ProcessingStage.AUDIO_SYNTHESIS
                             ) -> Callable[[LineStatusEvent], None]:
        """
        Build a callback that feeds per-line audio events into a stage.

        Every line that reaches DONE, SKIPPED or FAILED counts as completed.
        """
        finished = set()

        def on_line_status(event: LineStatusEvent) -> None:
            if event.status is LineStatus.LOADING:
                self.update_stage_progress(stage, current_item=f"line {event.index}")
                return
            finished.add(event.index)
            self.update_stage_progress(
                stage,
                completed_items=len(finished),
                details={event.status.value: self.stages[stage].details.get(event.status.value, 0) + 1}
            )

        return on_line_status

    def complete_pipeline(self, success: bool = True) -> None:
        """
        Complete the overall pipeline tracking.

        Args:
            success: Whether the pipeline completed successfully
        """
        self.pipeline_end_time = datetime.now()
        summary = self.generate_completion_summary()

        if success:
            self.logger.info("Pipeline completed successfully")
        else:
            self.logger.error("Pipeline failed")

        if self.enable_console_output:
            print("\n🎉 Pipeline completed successfully!" if success else "\n❌ Pipeline failed")
            self._print_completion_summary(summary)

    def update_summary_data(self, **kwargs) -> None:
        self.summary_data.update(kwargs)

    def generate_completion_summary(self) -> Dict[str, Any]:
        """
        Generate a completion summary.

        Returns:
            Dictionary containing completion statistics and details
        """
        total_duration = None
        if self.pipeline_start_time and self.pipeline_end_time:
            total_duration = self.pipeline_end_time - self.pipeline_start_time

        completed_stages = sum(1 for s in self.stages.values() if s.status == "completed")
        failed_stages = sum(1 for s in self.stages.values() if s.status == "failed")
        total_stages = sum(1 for s in self.stages.values() if s.status != "skipped")

        stage_summaries = {}
        for stage, progress in self.stages.items():
            stage_summaries[stage.value] = {
                'status': progress.status,
                'duration': progress.duration.total_seconds() if progress.duration else None,
                'items_processed': progress.completed_items,
                'total_items': progress.total_items,
                'details': progress.details
            }

        return {
            'pipeline_duration': total_duration.total_seconds() if total_duration else None,
            'stages_completed': completed_stages,
            'stages_failed': failed_stages,
            'total_stages': total_stages,
            'success_rate': (completed_stages / total_stages) * 100 if total_stages > 0 else 0,
            'lyric_lines': self.summary_data.get('lyric_lines', 0),
            'audio_clips': self.summary_data.get('audio_clips', 0),
            'cards_created': self.summary_data.get('cards_created', 0),
            'stage_details': stage_summaries,
            'timestamp': datetime.now().isoformat()
        }

    def _print_completion_summary(self, summary: Dict[str, Any]) -> None:
        """Print a formatted completion summary to console."""
        print("\n" + "=" * 50)
        print("📊 PROCESSING SUMMARY")
        print("=" * 50)

        duration = summary.get('pipeline_duration')
        if duration:
            print(f"⏱️  Total Duration: {duration:.1f} seconds")

        print(f"✅ Stages Completed: {summary.get('stages_completed', 0)}/{summary.get('total_stages', 0)}")
        if summary.get('stages_failed', 0) > 0:
            print(f"❌ Stages Failed: {summary.get('stages_failed', 0)}")

        print("\n📋 CONTENT PROCESSED:")
        print(f"   📝 Lyric Lines: {summary.get('lyric_lines', 0)}")
        print(f"   🔊 Audio Clips: {summary.get('audio_clips', 0)}")
        print(f"   🃏 Cards Created: {summary.get('cards_created', 0)}")
        print("=" * 50)


# Global progress tracker instance
progress_tracker = ProgressTracker()
