"""
Lyrics analysis service using the OpenAI chat completions API.

Requires the openai library and an OPENAI_API_KEY environment variable
(or an explicitly configured client).
"""

import json
import logging
from typing import Any, Optional

import openai
from openai import OpenAI
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from lyrics_anki_generator.config import Config
from lyrics_anki_generator.errors import AnalysisError, AnalysisParseError, error_handler
from lyrics_anki_generator.models import LyricsAnalysis
from lyrics_anki_generator.analysis.prompts import SYSTEM_PROMPT, build_user_prompt
from lyrics_anki_generator.analysis.services import LyricsAnalysisService


# Worth retrying: the request never reached the model or the service was busy
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAIAnalysisService(LyricsAnalysisService):
    """
    Analyzes lyrics with an OpenAI model in JSON mode.

    Transient API failures are retried a bounded number of times; the
    response must match the LyricsAnalysis schema exactly.
    """

    def __init__(self, client: Optional[Any] = None, model: str = Config.OPENAI_MODEL,
                 max_attempts: int = Config.ANALYSIS_MAX_ATTEMPTS,
                 wait_multiplier: float = 1.0):
        """
        Initialize the analysis service.

        Args:
            client: OpenAI client; created from the environment if None
            model: Chat model name
            max_attempts: Total attempts for transient failures
            wait_multiplier: Exponential backoff multiplier in seconds

        Raises:
            AnalysisError: If no client is given and none can be configured
        """
        self.logger = logging.getLogger(__name__)
        try:
            self.client = client or OpenAI()
        except openai.OpenAIError as e:
            raise AnalysisError(error_handler.handle_analysis_error(e)) from e
        self.model = model
        self.max_attempts = max_attempts
        self.wait_multiplier = wait_multiplier

    def analyze(self, song_title: str, lyrics: str) -> LyricsAnalysis:
        """
        Analyze the given song lyrics.

        Raises:
            AnalysisError: If the API call fails or returns no content
            AnalysisParseError: If the response is not a valid analysis
        """
        context = {'song_title': song_title}
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.wait_multiplier, max=8),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
        )

        try:
            content = retrying(self._complete, song_title, lyrics)
        except openai.OpenAIError as e:
            self.logger.error(f"Error analyzing lyrics for '{song_title}': {e}")
            raise AnalysisError(error_handler.handle_analysis_error(e, context)) from e

        if not content:
            raise AnalysisError(error_handler.handle_analysis_error(
                ValueError("No response from OpenAI API."), context
            ))

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise AnalysisParseError(
                error_handler.handle_parse_error(f"Response is not valid JSON: {e}", context)
            ) from e

        analysis = LyricsAnalysis.from_dict(data)
        self.logger.info(f"Analyzed '{analysis.song_title}' ({analysis.language_code}): "
                         f"{len(analysis.lines)} lines")
        return analysis

    def _complete(self, song_title: str, lyrics: str) -> Optional[str]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': build_user_prompt(song_title, lyrics)}
            ],
            temperature=Config.ANALYSIS_TEMPERATURE,
            response_format={'type': 'json_object'}
        )
        return response.choices[0].message.content
