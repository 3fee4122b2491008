"""
Configuration settings for the Lyrics Anki Generator.
"""

import os
from pathlib import Path


class Config:
    """Configuration class for application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    OUTPUT_DIR = Path(os.environ.get("LYRICS_ANKI_OUTPUT_DIR", PROJECT_ROOT / "output"))
    TEMP_DIR = Path(os.environ.get("LYRICS_ANKI_TEMP_DIR", PROJECT_ROOT / "temp"))
    AUDIO_DIR = TEMP_DIR / "audio"

    # Amazon Polly settings
    AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
    POLLY_ENGINE = "neural"
    POLLY_OUTPUT_FORMAT = "mp3"
    SPEECH_RATE = "slow"

    # Lyrics analysis settings
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")
    ANALYSIS_TEMPERATURE = 0
    ANALYSIS_MAX_ATTEMPTS = 3

    # Audio orchestration settings
    AUDIO_MAX_WORKERS = 1  # 1 = one line at a time
    MEDIA_FETCH_TIMEOUT = 30  # seconds

    # Anki settings
    PACKAGE_EXTENSION = ".apkg"
    AUDIO_EXTENSION = ".mp3"

    @classmethod
    def ensure_directories(cls):
        """Create necessary directories if they don't exist."""
        for directory in [cls.OUTPUT_DIR, cls.TEMP_DIR, cls.AUDIO_DIR]:
            directory.mkdir(parents=True, exist_ok=True)
